"""Check stored mappings for drift by re-extracting and re-hashing content."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from doksnet.errors import DoksnetError
from doksnet.hashing import fingerprint, short_hash
from doksnet.partition import extract_content, parse
from doksnet.store import DoksConfig, Mapping

logger = logging.getLogger(__name__)


class PartitionStatus(str, Enum):
    CURRENT = "CURRENT"
    STALE = "STALE"
    ERROR = "ERROR"


@dataclass
class PartitionCheck:
    """Result of checking one side of a mapping."""

    side: str  # "documentation" or "code"
    reference: str
    status: PartitionStatus
    expected_hash: str
    current_hash: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is PartitionStatus.CURRENT

    def describe(self) -> str:
        """One-line explanation of a failed check."""
        if self.status is PartitionStatus.ERROR:
            return f"{self.side}: {self.error}"
        if self.status is PartitionStatus.STALE:
            return (
                f"{self.side} content has changed "
                f"(expected: {short_hash(self.expected_hash)}..., "
                f"actual: {short_hash(self.current_hash or '')}...)"
            )
        return f"{self.side} content is current"


@dataclass
class MappingResult:
    """Result of checking both sides of a mapping."""

    mapping: Mapping
    doc: PartitionCheck
    code: PartitionCheck

    @property
    def passed(self) -> bool:
        return self.doc.ok and self.code.ok

    def failure_reasons(self) -> list[str]:
        reasons = []
        if not self.doc.ok:
            reasons.append(f"Documentation: {self.doc.describe()}")
        if not self.code.ok:
            reasons.append(f"Code: {self.code.describe()}")
        return reasons


@dataclass
class CheckReport:
    """Full check report."""

    checked: str
    results: list[MappingResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    def failed_results(self) -> list[MappingResult]:
        return [r for r in self.results if not r.passed]


def check_partition(
    reference: str,
    expected_hash: str,
    side: str,
    root: Path | str | None = None,
) -> PartitionCheck:
    """Re-extract a partition and compare it to its stored hash.

    Parse and resolve failures are reported as ERROR instead of raised.
    """
    try:
        content = extract_content(parse(reference), root=root)
    except DoksnetError as e:
        logger.info(f"Could not resolve {side} partition '{reference}': {e}")
        return PartitionCheck(
            side=side,
            reference=reference,
            status=PartitionStatus.ERROR,
            expected_hash=expected_hash,
            error=str(e),
            error_type=e.error_type,
        )

    current_hash = fingerprint(content)
    if current_hash == expected_hash:
        status = PartitionStatus.CURRENT
    else:
        status = PartitionStatus.STALE

    return PartitionCheck(
        side=side,
        reference=reference,
        status=status,
        expected_hash=expected_hash,
        current_hash=current_hash,
    )


def check_mapping(mapping: Mapping, root: Path | str | None = None) -> MappingResult:
    """Check the documentation and code sides of one mapping."""
    return MappingResult(
        mapping=mapping,
        doc=check_partition(mapping.doc_partition, mapping.doc_hash, "documentation", root),
        code=check_partition(mapping.code_partition, mapping.code_hash, "code", root),
    )


def check_all_mappings(
    config: DoksConfig,
    root: Path | str | None = None,
) -> CheckReport:
    """Check every mapping in a store.

    Args:
        config: Loaded .doks store
        root: Directory relative partition paths are resolved against

    Returns:
        Report with one result per mapping, in store order
    """
    report = CheckReport(checked=datetime.now(timezone.utc).isoformat())

    for mapping in config.mappings:
        result = check_mapping(mapping, root)
        if not result.passed:
            logger.info(f"Mapping {short_hash(mapping.id)} failed")
        report.results.append(result)

    return report


def remove_failed_mappings(config: DoksConfig, report: CheckReport) -> list[Mapping]:
    """Drop every mapping that failed in report from config.

    Returns:
        The removed mappings, in their original order
    """
    failed_ids = {r.mapping.id for r in report.failed_results()}
    removed = [m for m in config.mappings if m.id in failed_ids]
    config.mappings = [m for m in config.mappings if m.id not in failed_ids]
    return removed


def format_report(report: CheckReport) -> str:
    """Render a report as text."""
    lines = []

    for index, result in enumerate(report.results, start=1):
        mapping = result.mapping
        lines.append(f"Testing mapping {index}/{report.total}: {mapping.id}")
        if mapping.description:
            lines.append(f"  Description: {mapping.description}")
        lines.append(f"  Doc: {mapping.doc_partition}")
        lines.append(f"  Code: {mapping.code_partition}")
        lines.append("  PASS" if result.passed else "  FAIL")
        lines.append("")

    lines.append("=== Test Results Summary ===")
    lines.append(f"Passed: {report.passed}/{report.total}")
    lines.append(f"Failed: {report.failed}/{report.total}")

    if report.failed:
        lines.append("")
        lines.append("--- Failed Mappings ---")
        for index, result in enumerate(report.results, start=1):
            if result.passed:
                continue
            lines.append(f"{index}. {result.mapping.id} (ID: {short_hash(result.mapping.id)})")
            for reason in result.failure_reasons():
                lines.append(f"   - {reason}")
        lines.append("")
        lines.append("Tip: use 'doksnet edit <id>' to fix or re-accept a mapping")
    else:
        lines.append("")
        lines.append("All mappings are up to date.")

    return "\n".join(lines)
