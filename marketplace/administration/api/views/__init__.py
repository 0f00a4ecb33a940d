from .admin_views import AdminViewSet


__all__ = ["AdminViewSet"]
