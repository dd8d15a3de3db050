"""Status extraction for arbitrary watched objects."""

from statusinformer.status.extractor import StatusDecodeError, decode_status, extract_status

__all__ = ["StatusDecodeError", "decode_status", "extract_status"]
