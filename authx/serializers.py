from rest_framework import serializers

from users import identity


class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.CharField(max_length=254)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    is_iiit = serializers.BooleanField(required=False, default=False)
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    contact_number = serializers.CharField(required=False, allow_blank=True, max_length=20)
    college = serializers.CharField(required=False, allow_blank=True, max_length=255)
    interests = serializers.ListField(child=serializers.CharField(max_length=100), required=False)


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(max_length=254)
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        # Email + password together pick the account; guests may share an email
        user = identity.resolve(attrs.get("email"), attrs.get("password"))
        if not user:
            raise serializers.ValidationError("Invalid credentials", code="invalid_credentials")

        attrs["user"] = user
        return attrs
