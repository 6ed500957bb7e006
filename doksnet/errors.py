"""Error types shared by the partition resolver, the store and the CLI."""

from __future__ import annotations

from typing import Any, Optional


class DoksnetError(Exception):
    """Base class for every error doksnet raises on purpose."""

    error_type = "doksnet_error"

    def __init__(self, message: str, error_type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_type is not None:
            self.error_type = error_type

    def to_json(self) -> dict[str, Any]:
        """Serialize error to JSON format for machine parsing."""
        return {
            "error": self.error_type,
            "message": self.message,
        }

    def __str__(self) -> str:
        return self.message


# --- Reference parsing -------------------------------------------------------


class ParseError(DoksnetError):
    """A reference string does not follow the partition grammar."""

    error_type = "parse_error"

    def __init__(self, message: str, reference: str):
        super().__init__(message)
        self.reference = reference

    def to_json(self) -> dict[str, Any]:
        result = super().to_json()
        result["reference"] = self.reference
        return result


class InvalidReferenceError(ParseError):
    """Empty reference or empty file path."""

    error_type = "invalid_reference"


class InvalidRangeError(ParseError):
    """Non-numeric, signed or malformed line/column range."""

    error_type = "invalid_range"


# --- Content resolution ------------------------------------------------------


class ResolveError(DoksnetError):
    """A partition cannot be resolved against the current file content."""

    error_type = "resolve_error"

    def __init__(self, message: str, file_path: str):
        super().__init__(message)
        self.file_path = file_path

    def to_json(self) -> dict[str, Any]:
        result = super().to_json()
        result["file"] = self.file_path
        return result

    def __str__(self) -> str:
        return f"{self.message} | file: {self.file_path}"


class PartitionFileNotFoundError(ResolveError):
    error_type = "file_not_found"


class PartitionDecodeError(ResolveError):
    error_type = "decode_error"


class FileReadError(ResolveError):
    error_type = "file_read_error"


class LineOutOfRangeError(ResolveError):
    error_type = "line_out_of_range"


class InvertedRangeError(ResolveError):
    error_type = "inverted_range"


class ColumnOutOfRangeError(ResolveError):
    error_type = "column_out_of_range"


# --- Mapping store -----------------------------------------------------------


class StoreError(DoksnetError):
    """Error reading, writing or querying a .doks file.

    error_type is one of: store_not_found, store_exists, store_invalid,
    mapping_not_found, ambiguous_id.
    """

    error_type = "store_invalid"

    def __init__(
        self,
        message: str,
        error_type: str = "store_invalid",
        file: Optional[str] = None,
    ):
        super().__init__(message, error_type=error_type)
        self.file = file

    def to_json(self) -> dict[str, Any]:
        result = super().to_json()
        if self.file:
            result["file"] = self.file
        return result

    def __str__(self) -> str:
        parts = [self.message]
        if self.file:
            parts.append(f"file: {self.file}")
        return " | ".join(parts)
