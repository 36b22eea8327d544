from zen_wallet.core.wallet_types import MEMO_LENGTH, DecryptedNote

def decode_memo(memo: bytes) -> str:
    """Human readable memo: trailing zero padding stripped, UTF-8 decoded"""
    return memo.rstrip(b'\x00').decode('utf-8', errors='replace')

def encode_memo(text: str) -> bytes:
    """UTF-8 memo padded to the fixed memo length"""
    data = text.encode('utf-8')
    if len(data) > MEMO_LENGTH:
        raise ValueError(f"Memo exceeds {MEMO_LENGTH} bytes")
    return data.ljust(MEMO_LENGTH, b'\x00')

def describe_note(found: DecryptedNote) -> dict:
    """Loggable view of a decrypted note"""
    description = {
        'txid': found.txid,
        'index': found.index,
        'address': found.note.payment_address,
        'rcm': found.note.rcm.hex(),
        'value': found.note.value,
        'memo': decode_memo(found.note.memo),
    }
    if found.is_spent is not None:
        description['is_spent'] = found.is_spent
    return description
