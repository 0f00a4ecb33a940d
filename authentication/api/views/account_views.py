from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import permissions, status
from rest_framework.views import APIView

from authentication.api.serializers import (
    AccountSerializer,
    ChangePasswordSerializer,
    CustomTokenObtainPairSerializer,
    ProfileUpdateSerializer,
    PublicProfileSerializer,
    RegisterSerializer,
    SaleSerializer,
)
from infrastructure.container import container
from marketplace.api.responses import error_response, paginated_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer
from marketplace.catalog.api.serializers import ProductListSerializer


def token_pair(user) -> dict:
    refresh = CustomTokenObtainPairSerializer.get_token(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}


class RegisterAPIView(APIView):
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        operation_id="auth_register",
        summary="Register new user account",
        description="""
        **What it receives:**
        - `first_name`, `last_name`, `email`, `password` and optional `phone`

        **What it returns:**
        - The new account and a JWT pair, so the client is signed in right away
        - 400 when the email is taken, outside the allowed campus domains, or
          the password is too weak
        """,
        request=RegisterSerializer,
        responses={
            201: OpenApiResponse(response=AccountSerializer, description="Registration successful"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid registration data"),
        },
        tags=["Authentication"],
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = container.account_service().register(serializer.validated_data)
        if not result.ok:
            return error_response(result)

        user = result.value
        return success_response(
            AccountSerializer(user).data,
            "Registration successful",
            status_code=status.HTTP_201_CREATED,
            tokens=token_pair(user),
        )


class MeAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        operation_id="auth_me",
        summary="Current account",
        responses={200: OpenApiResponse(response=AccountSerializer, description="Account retrieved")},
        tags=["Authentication"],
    )
    def get(self, request):
        return success_response(AccountSerializer(request.user).data, "Account retrieved")

    @extend_schema(
        operation_id="auth_me_update",
        summary="Update own name and phone",
        request=ProfileUpdateSerializer,
        responses={
            200: OpenApiResponse(response=AccountSerializer, description="Profile updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid profile data"),
        },
        tags=["Authentication"],
    )
    def put(self, request):
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = container.account_service().update_profile(request.user, request.user.id, serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return success_response(AccountSerializer(result.value).data, "Profile updated")


class ChangePasswordAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        operation_id="auth_change_password",
        summary="Change password",
        description="""
        **What it receives:**
        - `current_password` and `new_password`

        **What it returns:**
        - Confirmation; existing tokens stay valid until they expire
        """,
        request=ChangePasswordSerializer,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Password changed"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Wrong current password or weak new one"),
        },
        tags=["Authentication"],
    )
    def put(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = container.account_service().change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        if not result.ok:
            return error_response(result)
        return success_response(message="Password changed successfully")


class UserProfileAPIView(APIView):
    """Public profile; the owner or an admin may edit it."""

    def get_permissions(self):
        if self.request.method == "GET":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    @extend_schema(
        operation_id="users_profile",
        summary="Public user profile",
        responses={
            200: OpenApiResponse(response=PublicProfileSerializer, description="Profile retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="User not found"),
        },
        tags=["Users"],
    )
    def get(self, request, user_id):
        result = container.account_service().get_profile(user_id)
        if not result.ok:
            return error_response(result)
        return success_response(PublicProfileSerializer(result.value).data, "Profile retrieved")

    @extend_schema(
        operation_id="users_profile_update",
        summary="Update a profile (owner or admin)",
        request=ProfileUpdateSerializer,
        responses={
            200: OpenApiResponse(response=AccountSerializer, description="Profile updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your profile"),
        },
        tags=["Users"],
    )
    def put(self, request, user_id):
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = container.account_service().update_profile(request.user, user_id, serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return success_response(AccountSerializer(result.value).data, "Profile updated")


class UserListingsAPIView(APIView):
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        operation_id="users_listings",
        summary="A user's listings",
        description="""
        **What it receives:**
        - `status` (query): defaults to `active`; other statuses, or `all`,
          are only available to the owner and admins
        - `page`, `page_size`
        """,
        parameters=[
            OpenApiParameter("status", str),
            OpenApiParameter("page", int),
            OpenApiParameter("page_size", int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer, description="Listings retrieved")},
        tags=["Users"],
    )
    def get(self, request, user_id):
        params = request.query_params
        result = container.account_service().get_listings(
            request.user, user_id, params.get("status"), params.get("page"), params.get("page_size")
        )
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, ProductListSerializer, "Listings retrieved")


class UserSalesAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        operation_id="users_sales",
        summary="A seller's sold order lines (owner or admin)",
        parameters=[OpenApiParameter("page", int), OpenApiParameter("page_size", int)],
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Sales retrieved"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your sales"),
        },
        tags=["Users"],
    )
    def get(self, request, user_id):
        params = request.query_params
        result = container.account_service().get_sales(
            request.user, user_id, params.get("page"), params.get("page_size")
        )
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, SaleSerializer, "Sales retrieved")
