from zen_wallet.core.wallet import ZenWallet
from zen_wallet.core.config import WalletConfig
from zen_wallet.core.config_manager import ConfigManager
from zen_wallet.core.wallet_types import ShieldedNote, OperationResult, ScanResult, AddressRecord
from zen_wallet.interfaces.zen_node import ZenNodeInterface, JsonRpcZenNode
from zen_wallet.interfaces.signer import SpendAuthSigner

__version__ = "1.0.0"
__all__ = [
    'ZenWallet',
    'WalletConfig',
    'ConfigManager',
    'ShieldedNote',
    'OperationResult',
    'ScanResult',
    'AddressRecord',
    'ZenNodeInterface',
    'JsonRpcZenNode',
    'SpendAuthSigner'
]
