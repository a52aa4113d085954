from launchpool.conf.get_settings import get_settings
from launchpool.conf.settings import LaunchPoolSettings

__all__ = ['LaunchPoolSettings', 'get_settings']
