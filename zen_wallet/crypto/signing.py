import hashlib

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed, decode_dss_signature, encode_dss_signature
)
from cryptography.exceptions import InvalidSignature
from ecdsa import SECP256k1, VerifyingKey
from ecdsa.util import sigdecode_string

from zen_wallet.core.exceptions import CryptoError

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SIGNATURE_LENGTH = 65

class TransactionSigner:
    """Signs transparent transaction digests with the session key"""

    def sign_digest(self, digest: bytes, private_key: bytes) -> bytes:
        """Sign a 32-byte SHA-256 digest, returning r || s || v with low S.

        v is the recovery id (0 or 1) that lets the node recover the
        signer's public key from the signature.
        """
        if len(digest) != 32:
            raise CryptoError("Digest must be 32 bytes")

        try:
            private_key_obj = ec.derive_private_key(
                int.from_bytes(private_key, 'big'),
                ec.SECP256K1()
            )
        except ValueError as e:
            raise CryptoError(f"Invalid signing key: {e}")

        der = private_key_obj.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))
        r, s = decode_dss_signature(der)
        if s > SECP256K1_ORDER // 2:
            s = SECP256K1_ORDER - s

        compact = r.to_bytes(32, 'big') + s.to_bytes(32, 'big')
        recovery_id = self._recovery_id(compact, digest, self.public_key(private_key))
        return compact + bytes([recovery_id])

    def _recovery_id(self, compact: bytes, digest: bytes, public_key: bytes) -> int:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            compact, digest, curve=SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
        for recovery_id, candidate in enumerate(candidates):
            if candidate.to_string('compressed') == public_key:
                return recovery_id
        raise CryptoError("Signature does not recover to the signing key")

    def public_key(self, private_key: bytes) -> bytes:
        """Compressed public key for a private key"""
        private_key_obj = ec.derive_private_key(int.from_bytes(private_key, 'big'), ec.SECP256K1())
        return private_key_obj.public_key().public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.CompressedPoint
        )

    def verify_digest(self, digest: bytes, signature: bytes, public_key: bytes) -> bool:
        """Verify an r || s || v signature over a digest"""
        if len(signature) != SIGNATURE_LENGTH:
            return False

        der = encode_dss_signature(
            int.from_bytes(signature[:32], 'big'),
            int.from_bytes(signature[32:64], 'big')
        )
        try:
            public_key_obj = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), public_key)
            public_key_obj.verify(der, digest, ec.ECDSA(Prehashed(hashes.SHA256())))
            return True
        except (InvalidSignature, ValueError):
            return False

    @staticmethod
    def recover_public_key(digest: bytes, signature: bytes) -> bytes:
        """Compressed public key recovered from an r || s || v signature"""
        if len(signature) != SIGNATURE_LENGTH or signature[64] > 1:
            raise CryptoError("Signature must be 65 bytes with recovery id 0 or 1")

        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            signature[:64], digest, curve=SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
        return candidates[signature[64]].to_string('compressed')
