from .settings_service import SettingsService


__all__ = ["SettingsService"]
