class WalletError(Exception):
    """Base exception for wallet errors"""
    pass

class SessionError(WalletError):
    """No active authenticated session"""
    pass

class AddressDecodeError(WalletError):
    """Malformed externally supplied address text"""
    pass

class NoteLookupError(WalletError):
    """Referenced local note index or address record does not exist"""
    pass

class RemoteAbsenceError(WalletError):
    """A remote primitive call returned no result"""
    pass

class VoucherCountMismatchError(WalletError):
    """Voucher batch size differs from the number of requested notes"""
    pass

class AddressValidationError(WalletError):
    """Assembled address record failed its post-condition check"""
    pass

class ScanRangeError(WalletError):
    """Invalid block range for a note scan"""
    pass

class TransferAssemblyError(WalletError):
    """Transfer parameters rejected before assembly"""
    pass

class CryptoError(WalletError):
    """Cryptography-related errors"""
    pass

class ConfigError(WalletError):
    """Configuration errors"""
    pass
