"""Coverage validation of a mapping registry against a document model."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel

from cellbind_io.mapping import MappingRegistry
from cellbind_io.schema import CellMapping, ValueType

from .allowlists import FORMULA, NEEDS_INVESTIGATION, AllowLists

LOGGER = logging.getLogger(__name__)


class FieldStatus(str, Enum):
    MAPPED = "mapped"
    UNVERIFIED = "unverified"
    EXCLUDED = "excluded"
    NEEDS_INVESTIGATION = "needsInvestigation"
    UNMAPPED = "unmapped"


@dataclass(frozen=True)
class FieldFinding:
    """Classification of one model leaf path."""

    path: str
    status: FieldStatus
    address: Optional[str] = None
    category: Optional[str] = None
    reason: str = ""


@dataclass(frozen=True)
class OrphanFinding:
    """A registry mapping whose data path is not a leaf of the model."""

    data_path: str
    address: str
    section: str


@dataclass(frozen=True)
class StaleEntry:
    """An allow-list entry that classified no field."""

    category: str
    path: str
    reason: str = ""


@dataclass
class CoverageReport:
    registry: str
    fields: List[FieldFinding] = field(default_factory=list)
    orphans: List[OrphanFinding] = field(default_factory=list)
    stale_entries: List[StaleEntry] = field(default_factory=list)

    def by_status(self, status: FieldStatus) -> List[FieldFinding]:
        return [f for f in self.fields if f.status is status]

    @property
    def total(self) -> int:
        return len(self.fields)

    @property
    def counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in FieldStatus}
        for finding in self.fields:
            counts[finding.status.value] += 1
        counts["orphanMappings"] = len(self.orphans)
        return counts

    @property
    def coverage_percent(self) -> float:
        """Share of fields that are mapped, registered-but-unverified or excluded."""

        if not self.fields:
            return 100.0
        counts = self.counts
        covered = counts["mapped"] + counts["unverified"] + counts["excluded"]
        return covered / self.total * 100

    @property
    def exit_code(self) -> int:
        return 1 if self.by_status(FieldStatus.UNMAPPED) or self.orphans else 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _as_tree(model: Any) -> Any:
    if isinstance(model, BaseModel):
        return model.model_dump(by_alias=True)
    if dataclasses.is_dataclass(model) and not isinstance(model, type):
        return dataclasses.asdict(model)
    return model


def _walk(node: Any, prefix: str) -> Iterator[str]:
    node = _as_tree(node)
    if isinstance(node, Mapping) and (node or not prefix):
        for key, value in node.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            yield from _walk(value, path)
        return
    # scalars, dates, lists, None and empty records are leaves
    if prefix:
        yield prefix


def enumerate_field_paths(model: Any) -> List[str]:
    """Return the dotted leaf paths of a model in declaration order.

    Pydantic models are dumped by alias first, so paths use the same
    camelCase keys as the mapping registries.
    """

    return list(_walk(model, ""))


def _classify_registered(path: str, mapping: CellMapping) -> FieldFinding:
    if mapping.value_type is ValueType.FORMULA:
        return FieldFinding(
            path,
            FieldStatus.EXCLUDED,
            address=mapping.address,
            category=FORMULA,
            reason=mapping.note or "template formula cell",
        )
    if mapping.verified:
        return FieldFinding(path, FieldStatus.MAPPED, address=mapping.address)
    return FieldFinding(
        path, FieldStatus.UNVERIFIED, address=mapping.address, reason=mapping.note
    )


def validate_coverage(
    registry: MappingRegistry,
    reference: Any,
    allow_lists: AllowLists,
) -> CoverageReport:
    """Check that every model field is mapped or deliberately allow-listed.

    Args:
        registry: Mapping registry under test.
        reference: Fully populated model instance (or nested dict) defining the shape.
        allow_lists: Fields that are intentionally left without a cell.

    Returns:
        Report with one finding per leaf path, orphan mappings and stale
        allow-list entries. ``exit_code`` is non-zero when fields are unmapped
        or mappings are orphaned.
    """

    fields = enumerate_field_paths(reference)
    leaf_paths = set(fields)
    registered: Dict[str, CellMapping] = {}
    for mapping in registry:
        registered.setdefault(mapping.data_path, mapping)

    report = CoverageReport(registry=registry.name)
    used: set[int] = set()

    for path in fields:
        mapping = registered.get(path)
        if mapping is not None:
            report.fields.append(_classify_registered(path, mapping))
            continue
        hit = allow_lists.match(path)
        if hit is None:
            report.fields.append(FieldFinding(path, FieldStatus.UNMAPPED))
            continue
        category, entry = hit
        used.add(id(entry))
        status = FieldStatus.NEEDS_INVESTIGATION if category == NEEDS_INVESTIGATION else FieldStatus.EXCLUDED
        report.fields.append(FieldFinding(path, status, category=category, reason=entry.reason))

    for section in registry.sections:
        for mapping in section.mappings:
            if mapping.data_path not in leaf_paths:
                report.orphans.append(OrphanFinding(mapping.data_path, mapping.address, section.name))

    for category, entry in allow_lists:
        if id(entry) not in used:
            report.stale_entries.append(StaleEntry(category, entry.path, entry.reason))

    LOGGER.info(
        "Coverage for %s: %.1f%% (%s)",
        registry.name,
        report.coverage_percent,
        ", ".join(f"{key}={value}" for key, value in report.counts.items()),
    )
    return report


__all__ = [
    "CoverageReport",
    "FieldFinding",
    "FieldStatus",
    "OrphanFinding",
    "StaleEntry",
    "enumerate_field_paths",
    "validate_coverage",
]
