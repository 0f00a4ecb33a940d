from .settings_serializers import PlatformSettingSerializer, UpdatePlatformSettingSerializer


__all__ = ["PlatformSettingSerializer", "UpdatePlatformSettingSerializer"]
