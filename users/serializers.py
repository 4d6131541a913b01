from rest_framework import serializers

from events.sanitizers import sanitize_description, sanitize_tags, sanitize_title
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'role',
            'is_iiit',
            'first_name',
            'last_name',
            'contact_number',
            'college',
            'interests',
            'date_joined',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email']
        read_only_fields = fields


class OrganizerSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'role',
            'category',
            'description',
            'contact_email',
            'date_joined',
        ]
        read_only_fields = fields


class OrganizerCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.CharField(max_length=254)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    contact_email = serializers.EmailField(required=False, allow_blank=True)


class ProfileSerializer(serializers.ModelSerializer):
    followed_organizers = UserSummarySerializer(many=True, read_only=True)

    class Meta:
        model = User
        fields = UserSerializer.Meta.fields + [
            'category',
            'description',
            'contact_email',
            'followed_organizers',
        ]
        read_only_fields = fields


class ParticipantProfileSerializer(serializers.ModelSerializer):
    interests = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'contact_number', 'college', 'interests']

    def validate_interests(self, value):
        return sanitize_tags(value)

    def update(self, instance, validated_data):
        instance = super().update(instance, validated_data)
        # Display name follows the first/last pair
        full_name = f"{instance.first_name} {instance.last_name}".strip()
        if full_name and full_name != instance.name:
            instance.name = full_name
            instance.save(update_fields=['name'])
        return instance


class OrganizerProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['name', 'category', 'description', 'contact_number', 'contact_email']

    def validate_name(self, value):
        value = sanitize_title(value)
        if not value:
            raise serializers.ValidationError("Organizer name cannot be blank")
        return value

    def validate_description(self, value):
        return sanitize_description(value)


class AdminProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['name', 'contact_number']


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(trim_whitespace=False)
