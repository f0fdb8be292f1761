from .json import canonical_bytes, canonical_dumps, json_dumps
from .logging import configure_logging
from .timestamps import now_iso, now_unix

__all__ = [
    "canonical_bytes",
    "canonical_dumps",
    "json_dumps",
    "configure_logging",
    "now_iso",
    "now_unix",
]
