from leena_core.config.settings import LeenaSettings, Settings, settings

__all__ = ["LeenaSettings", "Settings", "settings"]
