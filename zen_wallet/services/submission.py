from typing import Any, Dict, Optional

from zen_wallet.core.exceptions import WalletError
from zen_wallet.core.wallet_types import AssembledTransfer
from zen_wallet.interfaces.signer import SpendAuthSigner, NodeSpendAuthSigner
from zen_wallet.interfaces.zen_node import ZenNodeInterface
from zen_wallet.utils.logging import logger

class ShieldedTransactionSubmitter:
    """Turns assembled transfers into signed, broadcast transactions"""

    def __init__(self, node: ZenNodeInterface, session, signer: Optional[SpendAuthSigner] = None):
        self.node = node
        self.session = session
        self.signer = signer or NodeSpendAuthSigner(node)

    def submit(self, assembled: AssembledTransfer) -> Optional[str]:
        """Create, sign and broadcast; returns the transaction id or None"""
        request = assembled.request
        params = request.to_params()

        if request.withholds_spend_authority:
            transaction = self.node.create_shielded_transaction_without_spend_auth_sig(params)
        else:
            transaction = self.node.create_shielded_transaction(params)
        if transaction is None:
            logger.error("Node could not create the shielded transaction")
            return None

        # Without shielded spends there is nothing to authorize
        if request.withholds_spend_authority and request.spends:
            transaction = self._add_spend_authority(transaction, assembled)
            if transaction is None:
                return None

        if request.transparent_from is not None:
            transaction = self._sign_transparent(transaction)
            if transaction is None:
                return None

        txid = transaction.get('txID')
        if not self.node.broadcast_transaction(transaction):
            logger.error(f"Broadcast of shielded transaction {txid} failed")
            return None

        logger.info(f"Shielded transaction broadcast: {txid}")
        return txid

    def _add_spend_authority(self, transaction: Dict[str, Any],
                             assembled: AssembledTransfer) -> Optional[Dict[str, Any]]:
        if assembled.spend_authority is None:
            logger.error("Transfer withholds spend authority but none was supplied")
            return None

        tx_hash = bytes.fromhex(transaction.get('txID', ''))
        signatures = []
        for position, spend in enumerate(assembled.request.spends):
            signature = self.signer.sign(assembled.spend_authority, spend.alpha, tx_hash)
            if signature is None:
                logger.error(f"No spend authority signature for spend {position}")
                return None
            signatures.append(signature)

        signed = self.node.attach_spend_auth_sigs(transaction, signatures)
        if signed is None:
            logger.error("Node could not attach spend authority signatures")
        return signed

    def _sign_transparent(self, transaction: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            signature = self.session.sign(bytes.fromhex(transaction['txID']))
        except (KeyError, ValueError, WalletError) as e:
            logger.error(f"Failed to sign shielded transaction: {e}")
            return None

        signed = dict(transaction)
        signed['signature'] = list(transaction.get('signature', [])) + [signature.hex()]
        return signed
