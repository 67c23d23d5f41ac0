"""Reporting utilities for coverage validation and mapping verification."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from cellbind_io.schema import MappingSummary

from .validator import CoverageReport, FieldStatus

FRAME_COLUMNS = ["path", "status", "address", "category", "reason"]


def coverage_frame(report: CoverageReport) -> pd.DataFrame:
    """Per-field listing of a coverage report, one row per model leaf."""

    rows = [
        {
            "path": finding.path,
            "status": finding.status.value,
            "address": finding.address,
            "category": finding.category,
            "reason": finding.reason,
        }
        for finding in report.fields
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def write_coverage_csv(report: CoverageReport, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    coverage_frame(report).to_csv(path, index=False, encoding="utf-8")
    return path


def render_coverage_report(report: CoverageReport, *, verbose: bool = False) -> str:
    """Render a console report; problems are always listed, mapped fields only when verbose."""

    counts = report.counts
    lines = [f"Coverage report: {report.registry}", ""]
    lines.append(f"- Fields: {report.total}")
    lines.append(f"- Mapped: {counts['mapped']}")
    lines.append(f"- Registered but unverified: {counts['unverified']}")
    lines.append(f"- Excluded: {counts['excluded']}")
    lines.append(f"- Needs investigation: {counts['needsInvestigation']}")
    lines.append(f"- Unmapped: {counts['unmapped']}")
    lines.append(f"- Orphan mappings: {counts['orphanMappings']}")
    lines.append(f"- Coverage: {report.coverage_percent:.1f}%")
    lines.append("")

    unmapped = report.by_status(FieldStatus.UNMAPPED)
    if unmapped:
        lines.append("Unmapped fields (add a mapping or an allow-list entry):")
        lines.extend(f"  - {finding.path}" for finding in unmapped)
        lines.append("")

    if report.orphans:
        lines.append("Orphan mappings (data path is not a model field):")
        lines.extend(
            f"  - {orphan.address} -> {orphan.data_path} [{orphan.section}]" for orphan in report.orphans
        )
        lines.append("")

    unverified = report.by_status(FieldStatus.UNVERIFIED)
    if unverified:
        lines.append("Registered but unverified (not written on export):")
        lines.extend(f"  - {finding.address} -> {finding.path}" for finding in unverified)
        lines.append("")

    investigate = report.by_status(FieldStatus.NEEDS_INVESTIGATION)
    if investigate:
        lines.append("Needs investigation:")
        lines.extend(
            f"  - {finding.path}" + (f" ({finding.reason})" if finding.reason else "") for finding in investigate
        )
        lines.append("")

    if report.stale_entries:
        lines.append("Notes: allow-list entries that classified no field:")
        lines.extend(f"  - [{entry.category}] {entry.path}" for entry in report.stale_entries)
        lines.append("")

    if verbose:
        lines.append("Mapped fields:")
        lines.extend(
            f"  - {finding.address} -> {finding.path}" for finding in report.by_status(FieldStatus.MAPPED)
        )
        lines.append("")

    lines.append("Result: OK" if report.ok else "Result: FAILED")
    return "\n".join(lines)


def render_mapping_summary(summary: MappingSummary) -> str:
    """Render per-section verification counts for a registry."""

    lines = [f"Mapping verification: {summary.registry}", ""]
    width = max((len(section.name) for section in summary.sections), default=7)
    for section in summary.sections:
        marker = "  (empty)" if section.total == 0 else ""
        lines.append(f"  {section.name:<{width}}  {section.verified:>3}/{section.total:<3} verified{marker}")
    lines.append("")
    lines.append(f"- Sections: {summary.total_sections}")
    lines.append(f"- Cells: {summary.total_cells}")
    lines.append(f"- Verified: {summary.verified_cells}")
    lines.append(f"- Unverified: {summary.unverified_cells}")
    ratio = summary.verified_ratio
    lines.append(f"- Verified ratio: {'n/a' if ratio is None else f'{ratio * 100:.1f}%'}")
    if summary.empty_sections:
        lines.append(f"- Empty sections: {', '.join(summary.empty_sections)}")
    return "\n".join(lines)
