from .zen_node import ZenNodeInterface, JsonRpcZenNode
from .signer import SpendAuthSigner, NodeSpendAuthSigner

__all__ = [
    'ZenNodeInterface',
    'JsonRpcZenNode',
    'SpendAuthSigner',
    'NodeSpendAuthSigner'
]
