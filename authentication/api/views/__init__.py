from .account_views import (
    ChangePasswordAPIView,
    MeAPIView,
    RegisterAPIView,
    UserListingsAPIView,
    UserProfileAPIView,
    UserSalesAPIView,
)
from .token_views import CustomTokenObtainPairView


__all__ = [
    "ChangePasswordAPIView",
    "CustomTokenObtainPairView",
    "MeAPIView",
    "RegisterAPIView",
    "UserListingsAPIView",
    "UserProfileAPIView",
    "UserSalesAPIView",
]
