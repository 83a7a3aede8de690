"""Config settings – 12-factor env-based configuration."""
from mp_uow.config.settings.base import Settings, UnitOfWorkSettings
from mp_uow.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = [
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "Settings",
    "SettingsLoader",
    "UnitOfWorkSettings",
]
