"""Format sniffing subsystem."""

from docsift.sniffer.sniffer import (
    EXTENSION_FORMATS,
    detect_format,
    detect_from_content,
    extension_to_format,
    looks_like_csv,
)

__all__ = [
    "EXTENSION_FORMATS",
    "detect_format",
    "detect_from_content",
    "extension_to_format",
    "looks_like_csv",
]
