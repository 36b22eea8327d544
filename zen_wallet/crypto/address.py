import base58
from bech32 import bech32_encode, bech32_decode, convertbits
from typing import Optional, Tuple

from zen_wallet.core.exceptions import AddressDecodeError
from zen_wallet.core.wallet_types import DIVERSIFIER_LENGTH, KEY_COMPONENT_LENGTH

TRANSPARENT_ADDRESS_LENGTH = 21
DEFAULT_SHIELDED_HRP = "ztron"

class TransparentAddressCodec:
    """Base58check codec for account addresses"""

    def __init__(self, prefix: int):
        self.prefix = prefix

    def decode(self, address: str) -> bytes:
        """Decode address text to its 21-byte form"""
        if not address or not isinstance(address, str):
            raise AddressDecodeError("Address is empty")

        try:
            payload = base58.b58decode_check(address)
        except ValueError as e:
            raise AddressDecodeError(f"Invalid base58check address {address!r}: {e}")

        if len(payload) != TRANSPARENT_ADDRESS_LENGTH:
            raise AddressDecodeError(
                f"Invalid address length {len(payload)} for {address!r}"
            )
        if payload[0] != self.prefix:
            raise AddressDecodeError(
                f"Address {address!r} has prefix {payload[0]:#04x}, expected {self.prefix:#04x}"
            )
        return payload

    def encode(self, payload: bytes) -> str:
        """Encode a 21-byte address"""
        if len(payload) != TRANSPARENT_ADDRESS_LENGTH or payload[0] != self.prefix:
            raise AddressDecodeError("Payload is not an account address for this network")
        return base58.b58encode_check(payload).decode('ascii')

    def is_valid(self, address: str) -> bool:
        try:
            self.decode(address)
            return True
        except AddressDecodeError:
            return False

class ShieldedAddressCodec:
    """Bech32 codec for shielded payment addresses (payload is d || pk_d)"""

    @staticmethod
    def encode(d: bytes, pk_d: bytes, hrp: str = DEFAULT_SHIELDED_HRP) -> str:
        if len(d) != DIVERSIFIER_LENGTH or len(pk_d) != KEY_COMPONENT_LENGTH:
            raise AddressDecodeError("Diversifier or pk_d has the wrong length")

        data = convertbits(d + pk_d, 8, 5)
        return bech32_encode(hrp, data)

    @staticmethod
    def decode(address: str, hrp: Optional[str] = None) -> Tuple[bytes, bytes]:
        decoded_hrp, data = bech32_decode(address)
        if decoded_hrp is None or data is None:
            raise AddressDecodeError(f"Invalid bech32 payment address {address!r}")
        if hrp is not None and decoded_hrp != hrp:
            raise AddressDecodeError(f"Payment address prefix {decoded_hrp!r}, expected {hrp!r}")

        payload = convertbits(data, 5, 8, False)
        if payload is None or len(payload) != DIVERSIFIER_LENGTH + KEY_COMPONENT_LENGTH:
            raise AddressDecodeError(f"Invalid payment address payload in {address!r}")

        payload = bytes(payload)
        return payload[:DIVERSIFIER_LENGTH], payload[DIVERSIFIER_LENGTH:]
