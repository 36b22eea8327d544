from typing import Optional

from zen_wallet.core.exceptions import RemoteAbsenceError, AddressValidationError, CryptoError
from zen_wallet.core.wallet_types import (
    AddressRecord, ExpandedSpendingKey, FullViewingKey,
    SPENDING_KEY_LENGTH, DIVERSIFIER_LENGTH, KEY_COMPONENT_LENGTH
)
from zen_wallet.crypto.address import ShieldedAddressCodec, DEFAULT_SHIELDED_HRP
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.utils.validation import require_length
from zen_wallet.utils.logging import logger

class KeyDerivationPipeline:
    """Sequences the node's key primitives into address records.

    sk -> (ask, nsk, ovk) -> (ak, nk) -> ivk -> pk_d for a diversifier d.
    The curve arithmetic stays on the node; this class only orders the
    calls, checks each result is present and validates the final record.
    """

    def __init__(self, node: ZenNodeInterface, hrp: str = DEFAULT_SHIELDED_HRP):
        self.node = node
        self.hrp = hrp

    def generate_address(self) -> Optional[AddressRecord]:
        """Create an address from a fresh spending key and diversifier"""
        sk = self.node.get_spending_key()
        if sk is None:
            logger.error("Node returned no spending key")
            return None

        d = self.node.get_diversifier()
        if d is None:
            logger.error("Node returned no diversifier")
            return None

        return self.derive_address(sk, d)

    def derive_address(self, sk: bytes, d: bytes) -> Optional[AddressRecord]:
        """Recreate the address bound to (sk, d)"""
        require_length(sk, SPENDING_KEY_LENGTH, "spending key")
        require_length(d, DIVERSIFIER_LENGTH, "diversifier")

        try:
            record = self._build_record(sk, d)
        except (RemoteAbsenceError, AddressValidationError, CryptoError) as e:
            logger.error(f"Shielded address derivation failed: {e}")
            return None

        logger.debug(f"Derived shielded address {record.payment_address}")
        return record

    def _build_record(self, sk: bytes, d: bytes) -> AddressRecord:
        expanded = self.expand(sk)
        fvk = self._fvk_from_expanded(expanded)

        ivk = self.node.get_incoming_viewing_key(fvk.ak, fvk.nk)
        if ivk is None:
            raise RemoteAbsenceError("Node returned no incoming viewing key")

        pk_d = self.node.get_zen_payment_address(d, ivk)
        if pk_d is None:
            raise RemoteAbsenceError("Node returned no payment address")
        require_length(pk_d, KEY_COMPONENT_LENGTH, "pk_d")

        record = AddressRecord(
            sk=sk,
            d=d,
            ivk=ivk,
            ovk=expanded.ovk,
            pk_d=pk_d,
            payment_address=ShieldedAddressCodec.encode(d, pk_d, self.hrp),
        )
        if not record.validate_check():
            raise AddressValidationError(f"Address record {record.payment_address} failed validation")
        return record

    def expand(self, sk: bytes) -> ExpandedSpendingKey:
        """Expanded spending key for sk"""
        require_length(sk, SPENDING_KEY_LENGTH, "spending key")
        expanded = self.node.get_expanded_spending_key(sk)
        if expanded is None:
            raise RemoteAbsenceError("Node returned no expanded spending key")
        return expanded

    def ak_from_ask(self, ask: bytes) -> bytes:
        ak = self.node.get_ak_from_ask(ask)
        if ak is None:
            raise RemoteAbsenceError("Node returned no ak")
        return ak

    def full_viewing_key(self, sk: bytes) -> FullViewingKey:
        """Full viewing key (ak, nk) for sk"""
        return self._fvk_from_expanded(self.expand(sk))

    def _fvk_from_expanded(self, expanded: ExpandedSpendingKey) -> FullViewingKey:
        ak = self.ak_from_ask(expanded.ask)
        nk = self.node.get_nk_from_nsk(expanded.nsk)
        if nk is None:
            raise RemoteAbsenceError("Node returned no nk")
        return FullViewingKey(ak=ak, nk=nk)
