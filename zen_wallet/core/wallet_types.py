# zen_wallet/core/wallet_types.py
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

SPENDING_KEY_LENGTH = 32
DIVERSIFIER_LENGTH = 11
KEY_COMPONENT_LENGTH = 32
RCM_LENGTH = 32
MEMO_LENGTH = 512

# Outgoing viewing key used when a transfer has no shielded input to source one
# from. It is publicly known so auditors can decrypt outputs of such transfers.
DEFAULT_AUDIT_OVK_V1 = bytes.fromhex(
    "030c8c2bc59fb3eb8afb047a8ea4b028743d23e7d38c6fa30908358431e2314d"
)


def _is_zero(value: bytes) -> bool:
    return not any(value)


class ScanKind(Enum):
    """Viewing key a scan was performed with"""
    INCOMING = "ivk"
    INCOMING_MARKED = "ivk_marked"
    OUTGOING = "ovk"


@dataclass(frozen=True)
class ExpandedSpendingKey:
    """Spend authorizing triple derived from a spending key"""
    ask: bytes
    nsk: bytes
    ovk: bytes


@dataclass(frozen=True)
class FullViewingKey:
    """Viewing material without spend authority"""
    ak: bytes
    nk: bytes


@dataclass
class AddressRecord:
    """Local binding of a shielded payment address to its secrets"""
    sk: bytes
    d: bytes
    ivk: bytes
    ovk: bytes
    pk_d: bytes
    payment_address: str = ""

    def validate_check(self) -> bool:
        """Post-condition check run before a record is surfaced"""
        from zen_wallet.crypto.address import ShieldedAddressCodec
        from zen_wallet.core.exceptions import AddressDecodeError

        expected = {
            'sk': (self.sk, SPENDING_KEY_LENGTH),
            'd': (self.d, DIVERSIFIER_LENGTH),
            'ivk': (self.ivk, KEY_COMPONENT_LENGTH),
            'ovk': (self.ovk, KEY_COMPONENT_LENGTH),
            'pk_d': (self.pk_d, KEY_COMPONENT_LENGTH),
        }
        for value, length in expected.values():
            if not isinstance(value, bytes) or len(value) != length or _is_zero(value):
                return False

        if not self.payment_address:
            return False
        try:
            d, pk_d = ShieldedAddressCodec.decode(self.payment_address)
        except AddressDecodeError:
            return False
        return d == self.d and pk_d == self.pk_d

    def to_dict(self) -> Dict[str, Any]:
        return {
            'payment_address': self.payment_address,
            'd': self.d.hex(),
            'ivk': self.ivk.hex(),
            'ovk': self.ovk.hex(),
            'pk_d': self.pk_d.hex(),
        }


@dataclass
class ShieldedNote:
    """Value-carrying note as exchanged with the node"""
    payment_address: str
    value: int
    rcm: bytes
    memo: bytes = b""

    def to_params(self) -> Dict[str, Any]:
        return {
            'payment_address': self.payment_address,
            'value': self.value,
            'rcm': self.rcm.hex(),
            'memo': self.memo.hex(),
        }

    @classmethod
    def from_params(cls, data: Dict[str, Any]) -> 'ShieldedNote':
        return cls(
            payment_address=data.get('payment_address', ''),
            value=int(data.get('value', 0)),
            rcm=bytes.fromhex(data.get('rcm', '')),
            memo=bytes.fromhex(data.get('memo', '')),
        )


@dataclass
class TrackedNote:
    """A note the wallet may spend"""
    payment_address: str
    value: int
    rcm: bytes
    memo: bytes
    source_txid: str
    output_index: int

    @property
    def outpoint(self) -> tuple:
        return (self.source_txid, self.output_index)

    def to_note(self) -> ShieldedNote:
        return ShieldedNote(
            payment_address=self.payment_address,
            value=self.value,
            rcm=self.rcm,
            memo=self.memo,
        )


@dataclass
class MerkleVoucher:
    """Witness path proving note commitment membership"""
    voucher: Dict[str, Any]
    path: bytes


@dataclass
class SpendDescription:
    """One shielded input of a transfer"""
    note: ShieldedNote
    alpha: bytes
    voucher: Dict[str, Any]
    path: bytes

    def to_params(self) -> Dict[str, Any]:
        return {
            'note': self.note.to_params(),
            'alpha': self.alpha.hex(),
            'voucher': self.voucher,
            'path': self.path.hex(),
        }


@dataclass
class ReceiveDescription:
    """One shielded output of a transfer"""
    note: ShieldedNote

    def to_params(self) -> Dict[str, Any]:
        return {'note': self.note.to_params()}


@dataclass
class TransferRequest:
    """Full parameter bundle for one shielded transaction"""
    transparent_from: Optional[bytes] = None
    from_amount: int = 0
    transparent_to: Optional[bytes] = None
    to_amount: int = 0
    ask: Optional[bytes] = None
    ak: Optional[bytes] = None
    nsk: Optional[bytes] = None
    ovk: Optional[bytes] = None
    spends: List[SpendDescription] = field(default_factory=list)
    receives: List[ReceiveDescription] = field(default_factory=list)
    withholds_spend_authority: bool = False

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.transparent_from is not None:
            params['transparent_from_address'] = self.transparent_from.hex()
            params['from_amount'] = self.from_amount
        if self.transparent_to is not None:
            params['transparent_to_address'] = self.transparent_to.hex()
            params['to_amount'] = self.to_amount
        for name in ('ask', 'ak', 'nsk', 'ovk'):
            value = getattr(self, name)
            if value is not None:
                params[name] = value.hex()
        params['shielded_spends'] = [spend.to_params() for spend in self.spends]
        params['shielded_receives'] = [receive.to_params() for receive in self.receives]
        return params


@dataclass
class AssembledTransfer:
    """Transfer request plus the spend authority withheld from it, if any"""
    request: TransferRequest
    spend_authority: Optional[bytes] = None


@dataclass
class DecryptedNote:
    """Note recovered by the node under a viewing key"""
    note: ShieldedNote
    txid: str
    index: int
    is_spent: Optional[bool] = None

    def to_tracked(self) -> TrackedNote:
        return TrackedNote(
            payment_address=self.note.payment_address,
            value=self.note.value,
            rcm=self.note.rcm,
            memo=self.note.memo,
            source_txid=self.txid,
            output_index=self.index,
        )


@dataclass
class ScanResult:
    """Outcome of a note scan"""
    kind: ScanKind
    start_height: int
    end_height: int
    notes: List[DecryptedNote] = field(default_factory=list)
    success: bool = True
    error: Optional[str] = None
    error_type: Optional[str] = None


@dataclass
class OperationResult:
    """Value or explicit failure returned by wallet operations"""
    success: bool
    value: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: Any = None) -> 'OperationResult':
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: Optional[str] = None) -> 'OperationResult':
        return cls(success=False, error=error, error_type=error_type)

    def __bool__(self) -> bool:
        return self.success
