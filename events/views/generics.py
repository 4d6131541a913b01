from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication

from events.exceptions import ValidationFailed

AUTHENTICATION_CLASSES = [JWTAuthentication, SessionAuthentication, BasicAuthentication]


def _first_error(errors):
    if isinstance(errors, dict):
        for key, value in errors.items():
            inner = _first_error(value)
            return inner if key == "non_field_errors" else f"{key}: {inner}"
    if isinstance(errors, list) and errors:
        return _first_error(errors[0])
    return str(errors)


def validated(serializer_class, data, **kwargs) -> dict:
    """
    Run a DRF input serializer and surface failures as ValidationFailed
    (code invalid_payload) so every 400 from the events app looks the same.
    """
    serializer = serializer_class(data=data, **kwargs)
    if not serializer.is_valid():
        raise ValidationFailed(_first_error(serializer.errors), code="invalid_payload")
    return serializer.validated_data


def client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")
