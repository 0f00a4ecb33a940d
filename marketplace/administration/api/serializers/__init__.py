from .admin_serializers import AdminUserSerializer, UserRoleSerializer, UserStatusSerializer


__all__ = ["AdminUserSerializer", "UserRoleSerializer", "UserStatusSerializer"]
