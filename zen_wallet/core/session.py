import time
import hashlib
import secrets
import threading
from typing import Dict, Any, Optional
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from zen_wallet.core.exceptions import SessionError, CryptoError
from zen_wallet.crypto.address import TransparentAddressCodec
from zen_wallet.crypto.signing import TransactionSigner
from zen_wallet.utils.secure import SecureBytes
from zen_wallet.utils.logging import logger

class WalletSession:
    """The logged-in account whose key signs transparent inputs"""

    def __init__(self, address_codec: TransparentAddressCodec):
        self.address_codec = address_codec
        self.signer = TransactionSigner()
        self.account_address: Optional[str] = None
        self.session_id: Optional[str] = None
        self.login_time: Optional[float] = None
        self._private_key: Optional[SecureBytes] = None
        self._lock = threading.RLock()

    @property
    def is_active(self) -> bool:
        return self._private_key is not None

    def login(self, account_address: str, private_key: bytes) -> str:
        """Open a session for an account, returning the new session id"""
        self.address_codec.decode(account_address)
        if not isinstance(private_key, bytes) or len(private_key) != 32:
            raise CryptoError("Private key must be 32 bytes")

        public_key = self.signer.public_key(private_key)

        with self._lock:
            if self.is_active:
                self.logout()

            self._private_key = SecureBytes(private_key)
            self.account_address = account_address
            self.session_id = self._generate_session_id(public_key)
            self.login_time = time.time()

        logger.info(f"Session opened for {account_address}", session_id=self.session_id)
        return self.session_id

    def logout(self) -> bool:
        with self._lock:
            if not self.is_active:
                return False

            self._private_key.wipe()
            self._private_key = None
            logger.info(f"Session closed for {self.account_address}", session_id=self.session_id)
            self.account_address = None
            self.session_id = None
            self.login_time = None
            return True

    def require_active(self, operation: str) -> None:
        if not self.is_active:
            raise SessionError(f"{operation} requires an active session, please login first")

    def sign(self, digest: bytes) -> bytes:
        """Sign a 32-byte transaction digest with the session key"""
        with self._lock:
            self.require_active("Signing")
            return self.signer.sign_digest(digest, self._private_key.get_value())

    def _generate_session_id(self, public_key: bytes) -> str:
        """Random session id bound to the account key"""
        hkdf = HKDF(
            algorithm=hashes.SHA512(),
            length=32,
            salt=secrets.token_bytes(32),
            info=b'zen-wallet-session-id-v1',
        )
        derived = hkdf.derive(secrets.token_bytes(32) + public_key)
        return hashlib.sha256(derived).hexdigest()[:32]

    def get_info(self) -> Dict[str, Any]:
        return {
            'active': self.is_active,
            'account_address': self.account_address,
            'session_id': self.session_id,
            'login_time': self.login_time,
        }
