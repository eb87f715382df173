from rest_framework_simplejwt.views import TokenObtainPairView
from .serializers import LoginSerializer


class LoginAPIView(TokenObtainPairView):
    """
    POST /api/login/  {"phone": "...", "password": "..."}

    Returns an access/refresh token pair.
    """

    serializer_class = LoginSerializer
