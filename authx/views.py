import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.throttling import ScopedRateThrottle
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from events.views.generics import AUTHENTICATION_CLASSES, validated
from users import identity
from users.serializers import UserSerializer
from .serializers import SignupSerializer, LoginSerializer

logger = logging.getLogger("felicity.users")


def token_pair(user):
    refresh = RefreshToken.for_user(user)
    refresh["role"] = user.role
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


class SignupView(APIView):
    # allow unauthenticated
    permission_classes = []
    authentication_classes = []

    def post(self, request):
        data = validated(SignupSerializer, request.data)
        user = identity.register_account(**data)
        return Response(
            {
                "message": "User created successfully",
                "user": UserSerializer(user).data,
                **token_pair(user),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    # allow unauthenticated
    permission_classes = []
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth-login"

    def get_authenticate_header(self, request):
        # Without authenticators DRF would turn AuthenticationFailed into a 403
        return 'Bearer realm="api"'

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            logger.info("Login rejected")
            raise AuthenticationFailed("Invalid credentials", code="invalid_credentials")

        user = serializer.validated_data["user"]
        return Response(
            {"user": UserSerializer(user).data, **token_pair(user)},
            status=status.HTTP_200_OK,
        )


class MeView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)
