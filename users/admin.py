from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'name', 'email', 'role', 'is_iiit', 'is_staff')
    list_filter = ('role', 'is_iiit', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'name', 'email')
    fieldsets = UserAdmin.fieldsets + (
        ('Felicity', {'fields': ('name', 'role', 'is_iiit', 'contact_number', 'college', 'interests')}),
        ('Organizer', {'fields': ('category', 'description', 'contact_email')}),
        ('Following', {'fields': ('followed_organizers',)}),
    )
    filter_horizontal = UserAdmin.filter_horizontal + ('followed_organizers',)
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Felicity', {'fields': ('name', 'email', 'role', 'is_iiit')}),
    )
