from typing import List, Optional

from msgspec import Struct

from exchanges.structs.common import ExchangePairFormat, FeeSchedule
from exchanges.structs.types import ExchangeName


class NetworkConfig(Struct, frozen=True):
    """
    Network configuration settings.

    Attributes:
        request_timeout: HTTP request timeout in seconds
        connect_timeout: Connection timeout in seconds
        max_concurrent: Maximum concurrent requests per exchange transport
    """
    request_timeout: float = 10.0
    connect_timeout: float = 5.0
    max_concurrent: int = 10

    def validate(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.max_concurrent <= 0:
            raise ValueError("max_concurrent must be positive")


class ExchangeCredentials(Struct, frozen=True):
    """Exchange API credentials."""
    api_key: str = ""
    secret_key: str = ""

    @property
    def has_private_api(self) -> bool:
        """Check if both credentials are provided."""
        return bool(self.api_key) and bool(self.secret_key)

    def get_preview(self) -> str:
        """Get safe preview of credentials for logging."""
        if not self.api_key:
            return "Not configured"
        if len(self.api_key) > 8:
            return f"{self.api_key[:4]}...{self.api_key[-4:]}"
        return "***"

    def validate(self) -> None:
        # Public-only mode: both empty is fine
        if bool(self.api_key) != bool(self.secret_key):
            raise ValueError("Both api_key and secret_key must be provided together or both empty")


class ExchangeConfig(Struct, frozen=True):
    """
    Complete exchange configuration including credentials and settings.

    Attributes:
        name: Exchange name (e.g., 'LIQUI', 'POLONIEX')
        credentials: API credentials
        base_url: Public REST API URL (adapter default when empty)
        private_url: Private (signed) REST API URL (adapter default when empty)
        api_version: Public API version path segment (adapter default when empty)
        enabled_pairs: Pairs to poll and cache, in config format (e.g., 'ETH_BTC')
        available_pairs: Pairs known to the exchange, in config format
        pair_format: Request and config pair formats (adapter default when None)
        rest_polling_delay: Seconds between poller cycles
        fees: Fee constants used by fee estimation (adapter default when None)
        nonce_seed: Optional fixed first nonce (wall clock when unset)
    """
    name: ExchangeName
    credentials: ExchangeCredentials
    base_url: str = ""
    private_url: str = ""
    api_version: str = ""
    enabled: bool = True
    enabled_pairs: List[str] = []
    available_pairs: List[str] = []
    pair_format: Optional[ExchangePairFormat] = None
    rest_polling_delay: float = 10.0
    network: NetworkConfig = NetworkConfig()
    fees: Optional[FeeSchedule] = None
    nonce_seed: Optional[int] = None

    def has_credentials(self) -> bool:
        return self.credentials.has_private_api

    def is_public_only(self) -> bool:
        return not self.has_credentials()

    def validate(self) -> None:
        if not self.name:
            raise ValueError("Exchange name is required")
        if self.rest_polling_delay <= 0:
            raise ValueError("rest_polling_delay must be positive")
        self.credentials.validate()
        self.network.validate()


class PollerConfig(Struct, frozen=True):
    """Market data poller settings."""
    exchanges: List[str] = []
    poll_tickers: bool = True
    poll_orderbooks: bool = True

