"""Tests for YAML configuration loading."""

import pytest

from config import ConfigManager, substitute_env_vars
from exchanges.structs.common import PairFormat
from infrastructure.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def reset_config_manager():
    ConfigManager.reset()
    yield
    ConfigManager.reset()


def make_config(**exchanges):
    return ConfigManager.from_dict({'environment': 'test', 'exchanges': exchanges})


class TestExchangeConfig:

    def test_exchange_section_is_parsed(self):
        manager = make_config(liqui={
            'api_key': 'key',
            'secret_key': 'secret',
            'enabled_pairs': 'eth_btc, ltc_btc',
            'available_pairs': ['ETH_BTC', 'LTC_BTC', 'ETH_USDT'],
            'rest_polling_delay': 5,
            'nonce_seed': '1700000000',
        })

        config = manager.get_exchange_config('LIQUI')

        assert config.name == 'LIQUI'
        assert config.has_credentials()
        assert config.enabled_pairs == ['ETH_BTC', 'LTC_BTC']
        assert config.available_pairs == ['ETH_BTC', 'LTC_BTC', 'ETH_USDT']
        assert config.rest_polling_delay == 5.0
        assert config.nonce_seed == 1700000000
        assert config.pair_format is None
        assert config.fees is None

    def test_missing_credentials_mean_public_only(self):
        config = make_config(poloniex={'enabled_pairs': ['BTC_ETH']}).get_exchange_config('poloniex')

        assert config.is_public_only()
        assert config.credentials.get_preview() == "Not configured"

    def test_unknown_exchange_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            make_config().get_exchange_config('liqui')
        assert exc_info.value.setting_name == 'exchanges.liqui'

    def test_half_credentials_rejected(self):
        with pytest.raises(ConfigurationError):
            make_config(liqui={'api_key': 'key'})

    def test_invalid_environment_rejected(self):
        with pytest.raises(ConfigurationError):
            ConfigManager.from_dict({'environment': 'staging'})

    def test_invalid_network_rejected(self):
        with pytest.raises(ConfigurationError):
            ConfigManager.from_dict({'environment': 'test', 'network': {'request_timeout': 0}})

    def test_pair_format_config_defaults_to_request(self):
        config = make_config(custom={
            'pair_format': {'request': {'delimiter': '', 'uppercase': False}},
        }).get_exchange_config('custom')

        assert config.pair_format.request == PairFormat(delimiter='', uppercase=False)
        assert config.pair_format.config == config.pair_format.request

    def test_fees_are_parsed(self):
        config = make_config(liqui={
            'fees': {'maker_rate': 0.001, 'taker_rate': '0.002', 'withdrawal_fees': {'btc': 0.0005}},
        }).get_exchange_config('liqui')

        assert config.fees.taker_rate == 0.002
        assert config.fees.withdrawal_fees == {'BTC': 0.0005}

    def test_network_override_per_exchange(self):
        manager = ConfigManager.from_dict({
            'environment': 'test',
            'network': {'request_timeout': 20},
            'exchanges': {
                'liqui': {'network': {'request_timeout': 3}},
                'poloniex': {},
            },
        })

        assert manager.get_exchange_config('liqui').network.request_timeout == 3.0
        assert manager.get_exchange_config('poloniex').network.request_timeout == 20.0


class TestPollerAndLogging:

    def test_poller_defaults_to_enabled_exchanges(self):
        manager = make_config(liqui={}, poloniex={'enabled': False})

        poller = manager.get_poller_config()

        assert poller.exchanges == ['liqui']
        assert poller.poll_tickers and poller.poll_orderbooks

    def test_poller_section(self):
        manager = ConfigManager.from_dict({
            'environment': 'test',
            'poller': {'exchanges': ['POLONIEX'], 'poll_orderbooks': False},
        })

        poller = manager.get_poller_config()

        assert poller.exchanges == ['poloniex']
        assert not poller.poll_orderbooks

    def test_default_logging_config(self):
        assert ConfigManager.from_dict({'environment': 'prod'}).get_logging_config().file is not None
        assert ConfigManager.from_dict({'environment': 'dev'}).get_logging_config().file is None

    def test_logging_section(self):
        manager = ConfigManager.from_dict({
            'environment': 'test',
            'logging': {'backends': {'console': {'enabled': True, 'min_level': 'info', 'color': False}}},
        })

        logging_config = manager.get_logging_config()

        assert logging_config.environment == 'test'
        assert logging_config.console.min_level == 'INFO'
        assert logging_config.file is None


class TestLoading:

    def test_substitute_env_vars(self, monkeypatch):
        monkeypatch.setenv('LIQUI_API_KEY', 'abc')
        monkeypatch.delenv('LIQUI_SECRET_KEY', raising=False)

        content = "key: ${LIQUI_API_KEY}\nsecret: ${LIQUI_SECRET_KEY}\ndelay: ${DELAY:10}"

        assert substitute_env_vars(content) == "key: abc\nsecret: \ndelay: 10"

    def test_load_from_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv('TEST_LIQUI_KEY', 'file-key')
        monkeypatch.setenv('TEST_LIQUI_SECRET', 'file-secret')
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            "environment: test\n"
            "exchanges:\n"
            "  liqui:\n"
            "    api_key: ${TEST_LIQUI_KEY}\n"
            "    secret_key: ${TEST_LIQUI_SECRET}\n"
            "    enabled_pairs: [ETH_BTC]\n"
        )

        manager = ConfigManager.load(config_file)

        assert manager.source == config_file
        assert manager.get_exchange_config('liqui').credentials.api_key == 'file-key'

    def test_load_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigurationError):
            ConfigManager.load(tmp_path / 'missing.yaml')

    def test_load_invalid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config_file = tmp_path / 'config.yaml'
        config_file.write_text("exchanges: [unclosed\n")

        with pytest.raises(ConfigurationError):
            ConfigManager.load(config_file)
