from .direction import is_text_reversed, reverse_text
from .translator import (
    decode,
    encode,
    ensure_document,
    extract_text,
    is_dialect_document,
    is_empty,
    preview,
)

__all__ = [
    "decode",
    "encode",
    "ensure_document",
    "extract_text",
    "is_dialect_document",
    "is_empty",
    "is_text_reversed",
    "preview",
    "reverse_text",
]
