#zen_wallet/core/config.py
from dataclasses import dataclass
from typing import Optional

from zen_wallet.core.exceptions import ConfigError

MAINNET_ADDRESS_PREFIX = 0x41
TESTNET_ADDRESS_PREFIX = 0xa0

@dataclass
class WalletConfig:
    """Wallet configuration"""
    network: str = "mainnet"
    node_url: Optional[str] = None
    rpc_timeout: int = 30
    address_prefix: Optional[int] = None
    shielded_hrp: str = "ztron"
    rescan_interval: int = 5
    rescan_start_height: int = 0
    scan_batch_size: int = 1000
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "detailed"

    def __post_init__(self):
        """Initialize derived properties after object creation"""
        if self.address_prefix is None:
            if self.network == "mainnet":
                self.address_prefix = MAINNET_ADDRESS_PREFIX
            else:
                self.address_prefix = TESTNET_ADDRESS_PREFIX

        if self.node_url is None:
            if self.network == "mainnet":
                self.node_url = "http://127.0.0.1:8090/jsonrpc"
            else:
                self.node_url = "http://127.0.0.1:8091/jsonrpc"

        if isinstance(self.address_prefix, str):
            # Hex strings survive YAML/TOML round trips better than ints
            self.address_prefix = int(self.address_prefix, 16)

        self.validate()

    def validate(self) -> None:
        """Reject settings the rescanner cannot make progress with"""
        if not isinstance(self.scan_batch_size, int) or self.scan_batch_size < 1:
            raise ConfigError(f"scan_batch_size must be a positive integer, got {self.scan_batch_size!r}")
        if not isinstance(self.rescan_interval, (int, float)) or self.rescan_interval <= 0:
            raise ConfigError(f"rescan_interval must be positive, got {self.rescan_interval!r}")
        if not isinstance(self.rescan_start_height, int) or self.rescan_start_height < 0:
            raise ConfigError(f"rescan_start_height must be non-negative, got {self.rescan_start_height!r}")
