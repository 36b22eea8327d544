from zen_wallet.crypto.address import TransparentAddressCodec, ShieldedAddressCodec
from zen_wallet.crypto.signing import TransactionSigner
from zen_wallet.crypto.key_derivation import KeyDerivationPipeline

__all__ = [
    'TransparentAddressCodec',
    'ShieldedAddressCodec',
    'TransactionSigner',
    'KeyDerivationPipeline'
]
