from .validation import parse_hex, validate_block_range, validate_amount
from .logging import setup_logging, get_logger
from .helpers import encode_memo, decode_memo

__all__ = [
    'parse_hex',
    'validate_block_range',
    'validate_amount',
    'setup_logging',
    'get_logger',
    'encode_memo',
    'decode_memo'
]
