"""Parse partition references and extract the text they point at.

A partition reference names a file and an optional line/column span:

    README.md               whole file
    README.md:10            line 10
    README.md:10-20         lines 10 to 20
    src/lib.py:5-25@10-50   line 5 from column 10 through line 25 column 50

Lines and columns are 1-indexed and inclusive. Columns count characters, not
bytes. Parsing never touches the filesystem; range checks against the actual
file happen in extract_content().
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from doksnet.errors import (
    ColumnOutOfRangeError,
    FileReadError,
    InvalidRangeError,
    InvalidReferenceError,
    InvertedRangeError,
    LineOutOfRangeError,
    PartitionDecodeError,
    PartitionFileNotFoundError,
)

logger = logging.getLogger(__name__)

# Only plain ASCII digits; int() alone would also take "+1", " 1" and "1_0"
INTEGER_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class Partition:
    """A file plus an optional line/column span inside it."""

    file_path: str
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    start_col: Optional[int] = None
    end_col: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.start_line is None) != (self.end_line is None):
            raise ValueError("start_line and end_line must be set together")
        if (self.start_col is None) != (self.end_col is None):
            raise ValueError("start_col and end_col must be set together")

    @property
    def has_lines(self) -> bool:
        return self.start_line is not None

    @property
    def has_columns(self) -> bool:
        return self.start_col is not None

    @classmethod
    def parse(cls, reference: str) -> "Partition":
        return parse(reference)

    def extract_content(self, root: Path | str | None = None) -> str:
        return extract_content(self, root=root)

    def to_reference(self) -> str:
        return to_reference(self)

    def __str__(self) -> str:
        return to_reference(self)


def parse(reference: str) -> Partition:
    """Parse a reference string into a Partition.

    Args:
        reference: Text of the form ``path[:lines[@cols]]``

    Returns:
        The parsed partition

    Raises:
        InvalidReferenceError: Empty reference or empty file path
        InvalidRangeError: Malformed line or column range
    """
    if not reference:
        raise InvalidReferenceError("Empty partition reference", reference)

    file_path, sep, range_spec = reference.partition(":")
    if not file_path:
        raise InvalidReferenceError(
            f"Missing file path in partition reference '{reference}'", reference
        )

    if not sep:
        return Partition(file_path=file_path)

    line_range, _, col_range = range_spec.partition("@")
    start_line, end_line = _parse_range(line_range, "line", reference)
    start_col, end_col = _parse_range(col_range, "column", reference)

    return Partition(
        file_path=file_path,
        start_line=start_line,
        end_line=end_line,
        start_col=start_col,
        end_col=end_col,
    )


def _parse_range(
    text: str,
    kind: str,
    reference: str,
) -> tuple[Optional[int], Optional[int]]:
    """Parse "", "N" or "S-E" into a (start, end) pair."""
    if not text:
        return None, None

    parts = text.split("-")
    if len(parts) > 2:
        raise InvalidRangeError(
            f"Invalid {kind} range '{text}' in '{reference}': too many '-' separators",
            reference,
        )

    for part in parts:
        if not INTEGER_PATTERN.fullmatch(part):
            raise InvalidRangeError(
                f"Invalid {kind} range '{text}' in '{reference}': "
                f"'{part}' is not a non-negative integer",
                reference,
            )

    if len(parts) == 1:
        value = int(parts[0])
        return value, value

    return int(parts[0]), int(parts[1])


def to_reference(partition: Partition) -> str:
    """Render a partition back to its reference string.

    Equal start and end collapse to a single number. Columns without lines
    keep the ':' so the result parses back to the same partition.
    """
    result = partition.file_path

    if partition.has_lines:
        result += ":" + _format_range(partition.start_line, partition.end_line)

    if partition.has_columns:
        if not partition.has_lines:
            result += ":"
        result += "@" + _format_range(partition.start_col, partition.end_col)

    return result


def _format_range(start: int, end: int) -> str:
    if start == end:
        return str(start)
    return f"{start}-{end}"


def extract_content(
    partition: Partition,
    root: Path | str | None = None,
) -> str:
    """Read the text a partition currently points at.

    Args:
        partition: Partition to resolve
        root: Directory that relative file paths are resolved against
            (defaults to the current working directory)

    Returns:
        The whole file when no line range is set, otherwise the selected
        lines (column-sliced at the span edges) joined with "\\n"

    Raises:
        PartitionFileNotFoundError: File missing or not a regular file
        PartitionDecodeError: File is not valid UTF-8
        FileReadError: Any other failure reading the file
        LineOutOfRangeError: Line bound is 0 or past the end of the file
        InvertedRangeError: Start line after end line (or start column after
            end column on a single line)
        ColumnOutOfRangeError: Column bound is 0 or past the end of its line
    """
    content = _read_text(partition.file_path, root)

    if not partition.has_lines:
        return content

    file_path = partition.file_path
    lines = _split_lines(content)
    start, end = partition.start_line, partition.end_line

    if start == 0 or end == 0:
        raise LineOutOfRangeError(
            f"Line numbers must be 1-indexed, got {start}-{end}", file_path
        )
    if start > len(lines) or end > len(lines):
        raise LineOutOfRangeError(
            f"Line range {start}-{end} exceeds file length ({len(lines)} lines)",
            file_path,
        )
    if start > end:
        raise InvertedRangeError(
            f"Start line {start} is after end line {end}", file_path
        )

    if not partition.has_columns:
        return "\n".join(lines[start - 1:end])

    start_col, end_col = partition.start_col, partition.end_col
    selected: list[str] = []

    for line_no in range(start, end + 1):
        line = lines[line_no - 1]

        if line_no == start and line_no == end:
            _check_column(start_col, line, line_no, file_path)
            _check_column(end_col, line, line_no, file_path)
            if start_col > end_col:
                raise InvertedRangeError(
                    f"Start column {start_col} is after end column {end_col} "
                    f"on line {line_no}",
                    file_path,
                )
            selected.append(line[start_col - 1:end_col])
        elif line_no == start:
            _check_column(start_col, line, line_no, file_path)
            selected.append(line[start_col - 1:])
        elif line_no == end:
            _check_column(end_col, line, line_no, file_path)
            selected.append(line[:end_col])
        else:
            selected.append(line)

    return "\n".join(selected)


def _check_column(col: int, line: str, line_no: int, file_path: str) -> None:
    if col == 0 or col > len(line):
        raise ColumnOutOfRangeError(
            f"Column {col} is outside line {line_no} ({len(line)} characters)",
            file_path,
        )


def _split_lines(content: str) -> list[str]:
    """Split text on "\\n" and "\\r\\n".

    A final newline does not start an extra empty line, and an empty file
    has no lines at all. str.splitlines() is not used because it also breaks
    on form feeds, vertical tabs and Unicode line separators.
    """
    if not content:
        return []

    lines = content.split("\n")
    # Last element is either "" (content ended with a newline) or an
    # unterminated line whose "\r", if any, is content
    tail = lines.pop()

    lines = [line[:-1] if line.endswith("\r") else line for line in lines]
    if tail:
        lines.append(tail)
    return lines


def _read_text(file_path: str, root: Path | str | None) -> str:
    """Read a file as strict UTF-8 without newline translation."""
    path = Path(file_path)
    if root is not None and not path.is_absolute():
        path = Path(root) / path

    if not path.is_file():
        raise PartitionFileNotFoundError(f"File not found: {file_path}", file_path)

    logger.debug(f"Reading partition source {path}")

    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise PartitionDecodeError(
            f"File is not valid UTF-8: {file_path} ({e.reason} at byte {e.start})",
            file_path,
        ) from e
    except FileNotFoundError as e:
        raise PartitionFileNotFoundError(f"File not found: {file_path}", file_path) from e
    except OSError as e:
        raise FileReadError(f"Could not read {file_path}: {e}", file_path) from e
