from .settings_views import PlatformSettingsViewSet


__all__ = ["PlatformSettingsViewSet"]
