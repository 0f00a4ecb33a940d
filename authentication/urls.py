from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from authentication.api.views import ChangePasswordAPIView, CustomTokenObtainPairView, MeAPIView, RegisterAPIView


urlpatterns = [
    path("token/", CustomTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("register/", RegisterAPIView.as_view(), name="register"),
    path("me/", MeAPIView.as_view(), name="me"),
    path("change-password/", ChangePasswordAPIView.as_view(), name="change_password"),
]
