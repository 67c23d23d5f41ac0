"""Coverage validation service package."""

from .allowlists import AllowListEntry, AllowLists, load_allow_lists
from .report import coverage_frame, render_coverage_report, render_mapping_summary, write_coverage_csv
from .validator import (
    CoverageReport,
    FieldFinding,
    FieldStatus,
    OrphanFinding,
    StaleEntry,
    enumerate_field_paths,
    validate_coverage,
)

__all__ = [
    "AllowListEntry",
    "AllowLists",
    "load_allow_lists",
    "CoverageReport",
    "FieldFinding",
    "FieldStatus",
    "OrphanFinding",
    "StaleEntry",
    "enumerate_field_paths",
    "validate_coverage",
    "coverage_frame",
    "write_coverage_csv",
    "render_coverage_report",
    "render_mapping_summary",
]
