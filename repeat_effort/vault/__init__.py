"""Note parsing and vault storage."""

from .block import MalformedStructuredList, parse_block, serialize_block
from .parser import extract_note
from .store import VaultStore

__all__ = [
    "MalformedStructuredList",
    "parse_block",
    "serialize_block",
    "extract_note",
    "VaultStore",
]
