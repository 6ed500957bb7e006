"""doksnet - Documentation-code mapping verification.

This package provides tools for:
- Addressing a span of a text file with a compact partition reference
- Extracting the current content of a partition
- Fingerprinting extracted content to detect drift
- Keeping documentation/code mappings in a .doks file and checking them

Usage:
    python -m doksnet new                                  # Create a .doks file
    python -m doksnet add --doc README.md:3-8 --code src/app.py:10-24
    python -m doksnet test                                 # Check for drift
    python -m doksnet remove-failed                        # Drop drifted mappings
"""

__version__ = "1.1.2"

from doksnet.errors import (  # noqa: E402
    ColumnOutOfRangeError,
    DoksnetError,
    FileReadError,
    InvalidRangeError,
    InvalidReferenceError,
    InvertedRangeError,
    LineOutOfRangeError,
    ParseError,
    PartitionDecodeError,
    PartitionFileNotFoundError,
    ResolveError,
    StoreError,
)
from doksnet.hashing import fingerprint, verify  # noqa: E402
from doksnet.partition import Partition, extract_content, parse, to_reference  # noqa: E402

__all__ = [
    "Partition",
    "parse",
    "extract_content",
    "to_reference",
    "fingerprint",
    "verify",
    "DoksnetError",
    "ParseError",
    "InvalidReferenceError",
    "InvalidRangeError",
    "ResolveError",
    "PartitionFileNotFoundError",
    "PartitionDecodeError",
    "FileReadError",
    "LineOutOfRangeError",
    "InvertedRangeError",
    "ColumnOutOfRangeError",
    "StoreError",
]
