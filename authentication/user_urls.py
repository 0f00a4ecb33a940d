from django.urls import path

from authentication.api.views import UserListingsAPIView, UserProfileAPIView, UserSalesAPIView


urlpatterns = [
    path("<uuid:user_id>/", UserProfileAPIView.as_view(), name="user_profile"),
    path("<uuid:user_id>/listings/", UserListingsAPIView.as_view(), name="user_listings"),
    path("<uuid:user_id>/sales/", UserSalesAPIView.as_view(), name="user_sales"),
]
