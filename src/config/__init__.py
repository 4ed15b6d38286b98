from .structs import ExchangeConfig, ExchangeCredentials, NetworkConfig, PollerConfig
from .config_manager import ConfigManager, substitute_env_vars

__all__ = [
    'ExchangeConfig',
    'ExchangeCredentials',
    'NetworkConfig',
    'PollerConfig',
    'ConfigManager',
    'substitute_env_vars',
]
