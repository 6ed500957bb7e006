"""The .doks mapping store: load, save, discover and edit mappings."""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from doksnet.errors import StoreError
from doksnet.hashing import fingerprint
from doksnet.partition import extract_content, parse

logger = logging.getLogger(__name__)

DOKS_FILE_NAME = ".doks"
FORMAT_VERSION = "0.1.0"

# Overrides the upward .doks search when set
DOKS_FILE_ENV = "DOKSNET_FILE"

# Well-known documentation file names, matched case-insensitively
DOC_FILE_PATTERNS = [
    "README.md",
    "README.rst",
    "README.txt",
    "README",
    "DOCS.md",
    "DOCUMENTATION.md",
    "GUIDE.md",
    "MANUAL.md",
]

MAPPING_FIELDS = ("id", "doc_partition", "code_partition", "doc_hash", "code_hash")


@dataclass
class Mapping:
    """A link between a documentation partition and a code partition."""

    id: str
    doc_partition: str
    code_partition: str
    doc_hash: str
    code_hash: str
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "doc_partition": self.doc_partition,
            "code_partition": self.code_partition,
            "doc_hash": self.doc_hash,
            "code_hash": self.code_hash,
        }
        if self.description is not None:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Mapping":
        description = data.get("description")
        return cls(
            id=str(data["id"]),
            doc_partition=str(data["doc_partition"]),
            code_partition=str(data["code_partition"]),
            doc_hash=str(data["doc_hash"]),
            code_hash=str(data["code_hash"]),
            description=str(description) if description is not None else None,
        )


@dataclass
class DoksConfig:
    """Contents of a .doks file."""

    default_doc: str
    version: str = FORMAT_VERSION
    mappings: list[Mapping] = field(default_factory=list)

    def add_mapping(self, mapping: Mapping) -> None:
        self.mappings.append(mapping)

    def find_mapping(self, id_prefix: str) -> Mapping:
        """Find a mapping by full id or a unique id prefix.

        Raises:
            StoreError: No mapping matches, or the prefix is ambiguous
        """
        if not id_prefix:
            raise StoreError("Empty mapping ID", error_type="mapping_not_found")

        for mapping in self.mappings:
            if mapping.id == id_prefix:
                return mapping

        matches = [m for m in self.mappings if m.id.startswith(id_prefix)]
        if not matches:
            raise StoreError(
                f"No mapping found with ID '{id_prefix}'",
                error_type="mapping_not_found",
            )
        if len(matches) > 1:
            raise StoreError(
                f"ID '{id_prefix}' matches {len(matches)} mappings; use a longer prefix",
                error_type="ambiguous_id",
            )
        return matches[0]

    def remove_mapping(self, id_prefix: str) -> Mapping:
        mapping = self.find_mapping(id_prefix)
        self.mappings.remove(mapping)
        return mapping

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "default_doc": self.default_doc,
            "mappings": [m.to_dict() for m in self.mappings],
        }


def new_config(default_doc: str) -> DoksConfig:
    """Return an empty store pointing at a default documentation file."""
    return DoksConfig(default_doc=default_doc)


def load_doks(path: Path | str) -> DoksConfig:
    """Load a .doks file.

    Args:
        path: Path to the .doks file

    Returns:
        Parsed store

    Raises:
        StoreError: File missing, invalid YAML, or wrong shape
    """
    path = Path(path)
    doks_file = str(path)

    if not path.is_file():
        raise StoreError(
            f"No {DOKS_FILE_NAME} file at {path}",
            error_type="store_not_found",
            file=doks_file,
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise StoreError(f"Invalid YAML: {e}", file=doks_file)
    except UnicodeDecodeError as e:
        raise StoreError(f"File is not valid UTF-8: {e}", file=doks_file)

    if not isinstance(data, dict):
        raise StoreError(f"Top-level {DOKS_FILE_NAME} content must be a mapping", file=doks_file)

    default_doc = data.get("default_doc")
    if not isinstance(default_doc, str) or not default_doc:
        raise StoreError("Missing 'default_doc'", file=doks_file)

    raw_mappings = data.get("mappings") or []
    if not isinstance(raw_mappings, list):
        raise StoreError("'mappings' must be a list", file=doks_file)

    mappings = []
    for index, entry in enumerate(raw_mappings):
        if not isinstance(entry, dict):
            raise StoreError(f"Mapping #{index} must be a mapping", file=doks_file)
        missing = [name for name in MAPPING_FIELDS if entry.get(name) is None]
        if missing:
            raise StoreError(
                f"Mapping #{index} is missing: {', '.join(missing)}",
                file=doks_file,
            )
        mappings.append(Mapping.from_dict(entry))

    config = DoksConfig(
        default_doc=default_doc,
        version=str(data.get("version", FORMAT_VERSION)),
        mappings=mappings,
    )
    logger.debug(f"Loaded {len(mappings)} mappings from {path}")
    return config


def save_doks(config: DoksConfig, path: Path | str) -> None:
    """Write a store to disk as YAML."""
    path = Path(path)
    content = yaml.safe_dump(
        config.to_dict(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    path.write_text(content, encoding="utf-8")
    logger.debug(f"Saved {len(config.mappings)} mappings to {path}")


def find_doks_file(start: Path | str | None = None) -> Path | None:
    """Locate the .doks file for a directory.

    DOKSNET_FILE wins when set. Otherwise walks up from start (defaults to
    the current directory) to the filesystem root.
    """
    override = os.environ.get(DOKS_FILE_ENV)
    if override:
        return Path(override)

    current = Path(start) if start is not None else Path.cwd()
    current = current.resolve()

    for directory in [current, *current.parents]:
        candidate = directory / DOKS_FILE_NAME
        if candidate.is_file():
            return candidate

    return None


def create_mapping(
    doc_reference: str,
    code_reference: str,
    description: Optional[str] = None,
    root: Path | str | None = None,
) -> Mapping:
    """Build a mapping from the current content of both partitions.

    Raises:
        ParseError: Either reference is malformed
        ResolveError: Either partition cannot be extracted
    """
    doc_content = extract_content(parse(doc_reference), root=root)
    code_content = extract_content(parse(code_reference), root=root)

    return Mapping(
        id=str(uuid.uuid4()),
        doc_partition=doc_reference,
        code_partition=code_reference,
        doc_hash=fingerprint(doc_content),
        code_hash=fingerprint(code_content),
        description=_clean_description(description),
    )


def update_mapping(
    mapping: Mapping,
    doc_reference: Optional[str] = None,
    code_reference: Optional[str] = None,
    description: Optional[str] = None,
    root: Path | str | None = None,
) -> Mapping:
    """Point a mapping at new references and re-hash the changed sides.

    Only a side given a new reference is re-hashed; a description-only edit
    leaves both hashes alone. With no arguments at all, both sides are
    re-hashed from their current content, which accepts an intentional
    change. Every side is resolved before the mapping is touched, so a
    failure leaves it unchanged.
    """
    reaccept = doc_reference is None and code_reference is None and description is None

    new_doc_hash = None
    new_code_hash = None
    if doc_reference is not None or reaccept:
        new_doc = doc_reference if doc_reference is not None else mapping.doc_partition
        new_doc_hash = fingerprint(extract_content(parse(new_doc), root=root))
    if code_reference is not None or reaccept:
        new_code = code_reference if code_reference is not None else mapping.code_partition
        new_code_hash = fingerprint(extract_content(parse(new_code), root=root))

    if new_doc_hash is not None:
        mapping.doc_partition = new_doc
        mapping.doc_hash = new_doc_hash
    if new_code_hash is not None:
        mapping.code_partition = new_code
        mapping.code_hash = new_code_hash
    if description is not None:
        mapping.description = _clean_description(description)

    return mapping


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None or not description.strip():
        return None
    return description.strip()


def find_documentation_files(directory: Path | str) -> list[str]:
    """List candidate documentation files directly inside a directory.

    Known documentation names and any *.md file qualify. README files sort
    first, then alphabetical.
    """
    directory = Path(directory)
    known = {pattern.lower() for pattern in DOC_FILE_PATTERNS}

    doc_files = []
    for entry in directory.iterdir():
        if not entry.is_file():
            continue
        if entry.name.lower() in known or entry.name.endswith(".md"):
            doc_files.append(entry.name)

    return sorted(doc_files, key=lambda name: (not name.lower().startswith("readme"), name))
