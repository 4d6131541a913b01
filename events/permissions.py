from rest_framework.permissions import BasePermission


def is_platform_admin(user) -> bool:
    return bool(user and user.is_authenticated and getattr(user, "is_platform_admin", False))


class IsParticipant(BasePermission):
    """
    Registering, buying and team formation are participant actions.
    """
    message = "Only participants can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "is_participant", False))


class IsOrganizer(BasePermission):
    """
    Organizers (and platform admins) manage events. Object ownership is
    checked in events.services.get_owned_event.
    """
    message = "Only organizers can perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "is_organizer", False) or is_platform_admin(user)


class IsOrganizerOrReadOnly(BasePermission):
    message = "Only organizers can perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return True
        return getattr(user, "is_organizer", False) or is_platform_admin(user)


class IsPlatformAdmin(BasePermission):
    message = "Only platform admins can perform this action."

    def has_permission(self, request, view):
        return is_platform_admin(request.user)
