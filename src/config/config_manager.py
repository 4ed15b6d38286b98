"""
Configuration Management

YAML-based configuration for the exchange adapters.

- config.yaml with ${VAR} / ${VAR:default} environment substitution
- .env loaded (without overriding the process environment) before parsing
- Exchange sections mapped onto frozen msgspec structs

Usage:
    from config import ConfigManager

    config = ConfigManager.load()
    liqui_config = config.get_exchange_config('liqui')
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

from exchanges.structs.common import ExchangePairFormat, FeeSchedule, PairFormat
from exchanges.structs.types import ExchangeName
from infrastructure.exceptions.system import ConfigurationError
from infrastructure.logging import LoggingConfig
from .structs import ExchangeConfig, ExchangeCredentials, NetworkConfig, PollerConfig

_ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')


def guess_file_paths(file_name: str) -> List[Path]:
    """Possible locations of a config file, most specific first."""
    return [
        Path.cwd() / file_name,
        Path(__file__).parent.parent.parent / file_name,  # Project root
        Path(__file__).parent.parent / file_name,         # src directory
    ]


class ConfigManager:
    """
    Loads config.yaml and exposes typed configuration.

    The instance created by load() without arguments is cached; tests build
    their own via from_dict().
    """

    _instance: Optional['ConfigManager'] = None

    def __init__(self, config_data: Dict[str, Any], source: Optional[Path] = None):
        self._logger = logging.getLogger(__name__)
        self._config_data = config_data or {}
        self.source = source

        environment = self._config_data.get('environment', 'dev')
        if isinstance(environment, dict):
            environment = environment.get('name', 'dev')
        self.environment = str(environment).lower()
        if self.environment not in ('dev', 'prod', 'test'):
            raise ConfigurationError(f"Invalid environment '{self.environment}'", 'environment')

        self._network_config = self._parse_network_config(self._config_data.get('network', {}), 'network')
        self._exchange_configs = self._build_exchange_configs()

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> 'ConfigManager':
        """Load configuration from path, or from the first config.yaml found."""
        if path is None and cls._instance is not None:
            return cls._instance

        _load_env_file()

        candidates = [Path(path)] if path is not None else guess_file_paths('config.yaml')
        for config_path in candidates:
            if config_path.exists():
                raw_content = config_path.read_text()
                try:
                    config_data = yaml.safe_load(substitute_env_vars(raw_content))
                except yaml.YAMLError as e:
                    raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
                manager = cls(config_data, source=config_path)
                if path is None:
                    cls._instance = manager
                return manager

        raise ConfigurationError(f"No config.yaml found (searched: {', '.join(str(p) for p in candidates)})")

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> 'ConfigManager':
        return cls(config_data)

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    # Exchange configuration

    def get_exchange_configs(self) -> Dict[str, ExchangeConfig]:
        return dict(self._exchange_configs)

    def get_exchange_config(self, exchange_name: str) -> ExchangeConfig:
        config = self._exchange_configs.get(exchange_name.lower())
        if config is None:
            raise ConfigurationError(f"Exchange '{exchange_name}' is not configured", f"exchanges.{exchange_name}")
        return config

    def get_enabled_exchanges(self) -> List[str]:
        return [name for name, config in self._exchange_configs.items() if config.enabled]

    def get_logging_config(self) -> LoggingConfig:
        logging_data = self._config_data.get('logging')
        if not logging_data:
            if self.environment == 'prod':
                return LoggingConfig.default_production()
            return LoggingConfig.default_development()
        try:
            return LoggingConfig.from_dict(logging_data, environment=self.environment)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid logging configuration: {e}", 'logging') from e

    def get_poller_config(self) -> PollerConfig:
        data = self._config_data.get('poller', {}) or {}
        return PollerConfig(
            exchanges=[str(name).lower() for name in data.get('exchanges', self.get_enabled_exchanges())],
            poll_tickers=bool(data.get('poll_tickers', True)),
            poll_orderbooks=bool(data.get('poll_orderbooks', True)),
        )

    # Parsing

    def _build_exchange_configs(self) -> Dict[str, ExchangeConfig]:
        exchanges_data = self._config_data.get('exchanges', {}) or {}
        configs = {}

        for exchange_name, exchange_data in exchanges_data.items():
            try:
                config = self._build_single_exchange_config(exchange_name, exchange_data or {})
                config.validate()
            except ConfigurationError:
                raise
            except (ValueError, TypeError, KeyError) as e:
                raise ConfigurationError(
                    f"Failed to configure exchange '{exchange_name}': {e}",
                    f"exchanges.{exchange_name}"
                ) from e
            configs[exchange_name.lower()] = config
            self._logger.debug(f"Configured exchange: {exchange_name} (enabled: {config.enabled})")

        return configs

    def _build_single_exchange_config(self, exchange_name: str, data: Dict[str, Any]) -> ExchangeConfig:
        credentials = ExchangeCredentials(
            api_key=str(data.get('api_key') or ''),
            secret_key=str(data.get('secret_key') or ''),
        )

        network = self._network_config
        if 'network' in data:
            network = self._parse_network_config(data['network'], f"exchanges.{exchange_name}.network")

        nonce_seed = data.get('nonce_seed')

        return ExchangeConfig(
            name=ExchangeName(exchange_name.upper()),
            credentials=credentials,
            base_url=str(data.get('base_url', '')),
            private_url=str(data.get('private_url', '')),
            api_version=str(data.get('api_version', '')),
            enabled=bool(data.get('enabled', True)),
            enabled_pairs=_split_pairs(data.get('enabled_pairs')),
            available_pairs=_split_pairs(data.get('available_pairs')),
            pair_format=self._parse_pair_format(data.get('pair_format')),
            rest_polling_delay=float(data.get('rest_polling_delay', 10.0)),
            network=network,
            fees=self._parse_fees(data.get('fees')),
            nonce_seed=int(nonce_seed) if nonce_seed is not None else None,
        )

    def _parse_network_config(self, part_config: Dict[str, Any], setting: str) -> NetworkConfig:
        try:
            config = NetworkConfig(
                request_timeout=float(part_config.get('request_timeout', 10.0)),
                connect_timeout=float(part_config.get('connect_timeout', 5.0)),
                max_concurrent=int(part_config.get('max_concurrent', 10)),
            )
            config.validate()
            return config
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Failed to parse network configuration: {e}", setting) from e

    @staticmethod
    def _parse_pair_format(data: Optional[Dict[str, Any]]) -> Optional[ExchangePairFormat]:
        if not data:
            return None

        def parse(part: Optional[Dict[str, Any]]) -> PairFormat:
            part = part or {}
            return PairFormat(
                delimiter=str(part.get('delimiter', '_')),
                uppercase=bool(part.get('uppercase', True)),
                quote_first=bool(part.get('quote_first', False)),
                separator=str(part.get('separator', '-')),
            )

        request = parse(data.get('request'))
        config = parse(data.get('config')) if 'config' in data else request
        return ExchangePairFormat(request=request, config=config)

    @staticmethod
    def _parse_fees(data: Optional[Dict[str, Any]]) -> Optional[FeeSchedule]:
        if not data:
            return None
        return FeeSchedule(
            maker_rate=float(data.get('maker_rate', 0.0)),
            taker_rate=float(data.get('taker_rate', 0.0)),
            withdrawal_fees={
                str(currency).upper(): float(fee)
                for currency, fee in (data.get('withdrawal_fees') or {}).items()
            },
        )


def substitute_env_vars(content: str) -> str:
    """
    Substitute environment variables in configuration content.

    Supports ${VAR_NAME} (empty string when unset) and ${VAR_NAME:default}.
    """
    def replace_var(match):
        var_expr = match.group(1)
        if ':' in var_expr:
            var_name, default_value = var_expr.split(':', 1)
            return os.getenv(var_name.strip(), default_value)
        # Unset credentials are allowed: public-only mode
        return os.getenv(var_expr.strip(), '')

    return _ENV_VAR_PATTERN.sub(replace_var, content)


def _load_env_file() -> None:
    for env_path in guess_file_paths('.env'):
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)
            return


def _split_pairs(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [str(pair).strip().upper() for pair in value if str(pair).strip()]
