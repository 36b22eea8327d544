from abc import ABC, abstractmethod
from typing import Optional

from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.utils.logging import logger

class SpendAuthSigner(ABC):
    """Abstract base class for spend authority signers"""

    @abstractmethod
    def sign(self, ask: bytes, alpha: bytes, tx_hash: bytes) -> Optional[bytes]:
        """Spend authority signature for one spend, re-randomized by alpha"""
        pass

    def get_device_info(self) -> dict:
        """Signer description for logs"""
        return {'type': type(self).__name__}

class NodeSpendAuthSigner(SpendAuthSigner):
    """Delegates spend authority signatures to the node"""

    def __init__(self, node: ZenNodeInterface):
        self.node = node

    def sign(self, ask: bytes, alpha: bytes, tx_hash: bytes) -> Optional[bytes]:
        signature = self.node.create_spend_auth_sig(ask, tx_hash, alpha)
        if signature is None:
            logger.error("Node returned no spend authority signature")
        return signature

    def get_device_info(self) -> dict:
        return {'type': 'node', 'api_url': getattr(self.node, 'api_url', None)}
