"""Status page configuration system."""

from statuspage.config.loader import find_config_file, load_config
from statuspage.config.models import CheckSettings, ProxyTemplate, ServiceDefinition, StatusPageConfig

__all__ = [
    "CheckSettings",
    "ProxyTemplate",
    "ServiceDefinition",
    "StatusPageConfig",
    "load_config",
    "find_config_file",
]
