from .account_serializers import (
    AccountSerializer,
    ChangePasswordSerializer,
    ProfileUpdateSerializer,
    PublicProfileSerializer,
    RegisterSerializer,
    SaleSerializer,
)
from .jwt_serializers import CustomTokenObtainPairSerializer


__all__ = [
    "AccountSerializer",
    "ChangePasswordSerializer",
    "CustomTokenObtainPairSerializer",
    "ProfileUpdateSerializer",
    "PublicProfileSerializer",
    "RegisterSerializer",
    "SaleSerializer",
]
