import re
from typing import Optional
from zen_wallet.core.exceptions import CryptoError, ScanRangeError, TransferAssemblyError
from zen_wallet.core.wallet_types import MEMO_LENGTH

_HEX_RE = re.compile(r'^[0-9a-fA-F]*$')

def parse_hex(value: str, length: Optional[int] = None, name: str = "value") -> bytes:
    """Decode a hex string, optionally enforcing its byte length"""
    if not isinstance(value, str):
        raise CryptoError(f"{name} must be a hex string, got {type(value).__name__}")
    if value.startswith('0x'):
        value = value[2:]

    if len(value) % 2 != 0 or not _HEX_RE.match(value):
        raise CryptoError(f"{name} is not valid hex")

    data = bytes.fromhex(value)
    if length is not None and len(data) != length:
        raise CryptoError(f"{name} must be {length} bytes, got {len(data)}")
    return data

def require_length(value: bytes, length: int, name: str) -> bytes:
    """Check a byte field has its exact length"""
    if not isinstance(value, bytes) or len(value) != length:
        raise CryptoError(f"{name} must be {length} bytes")
    return value

def validate_block_range(start_height: int, end_height: int) -> None:
    """Reject negative or inverted block ranges"""
    for height in (start_height, end_height):
        if not isinstance(height, int) or isinstance(height, bool):
            raise ScanRangeError(f"Block heights must be integers, got {height!r}")

    if start_height < 0 or end_height < 0:
        raise ScanRangeError(f"Block heights must be non-negative: {start_height}..{end_height}")

    if start_height > end_height:
        raise ScanRangeError(f"Start height {start_height} is above end height {end_height}")

def validate_amount(amount: int, name: str = "amount") -> int:
    """Validate amount is a non-negative integer"""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise TransferAssemblyError(f"{name} must be a non-negative integer, got {amount!r}")
    return amount

def validate_memo(memo: bytes) -> bytes:
    """Memo must be raw bytes that fit the fixed memo field"""
    if not isinstance(memo, bytes):
        raise TransferAssemblyError(f"memo must be bytes, got {type(memo).__name__}")
    if len(memo) > MEMO_LENGTH:
        raise TransferAssemblyError(f"memo is {len(memo)} bytes, limit is {MEMO_LENGTH}")
    return memo
