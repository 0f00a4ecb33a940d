from .platform_setting import PlatformSetting


__all__ = ["PlatformSetting"]
