from .config import WalletConfig
from .wallet_types import ScanKind, AddressRecord, ShieldedNote, TrackedNote, DecryptedNote
from .wallet_types import TransferRequest, AssembledTransfer, ScanResult, OperationResult
from .exceptions import WalletError, SessionError, RemoteAbsenceError, CryptoError, ConfigError

__all__ = [
    'WalletConfig',
    'ScanKind',
    'AddressRecord',
    'ShieldedNote',
    'TrackedNote',
    'DecryptedNote',
    'TransferRequest',
    'AssembledTransfer',
    'ScanResult',
    'OperationResult',
    'WalletError',
    'SessionError',
    'RemoteAbsenceError',
    'CryptoError',
    'ConfigError'
]
