"""Export a document model into its profile's template workbook."""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from string import Formatter
from typing import Any, BinaryIO, Mapping, Optional, Tuple, Union

from cellbind.core.errors import ProfileError
from cellbind.core.profiles import TemplateProfile
from cellbind.models import ContractData, FundPlanData, contract_from_fund_plan
from cellbind_io import resolver
from cellbind_io.excel_writer import ExportResult, write_mapped
from cellbind_io.mapping import MappingRegistry, load_registry

LOGGER = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\s]+')


def default_output_name(profile: TemplateProfile, model: Any, *, today: Optional[date] = None) -> str:
    """Build an output file name from the profile's ``output_name`` pattern.

    ``{date}`` expands to ``YYYYMMDD``; every other placeholder is a data path
    resolved against the model, empty when absent.
    """

    stamp = (today or date.today()).strftime("%Y%m%d")
    values: dict[str, str] = {}
    for _, field_name, _, _ in Formatter().parse(profile.output_name):
        if not field_name or field_name == "date" or field_name in values:
            continue
        value = resolver.get(model, field_name)
        text = "" if value is resolver.ABSENT or value is None else str(value)
        values[field_name] = _UNSAFE_CHARS.sub("_", text).strip("_")
    # dotted placeholders are not valid format() keywords, so substitute by hand
    name = profile.output_name.replace("{date}", stamp)
    for key, text in values.items():
        name = name.replace("{" + key + "}", text)
    return name


def load_profile_registry(profile: TemplateProfile) -> MappingRegistry:
    return load_registry(profile.mapping_path)


def export_document(
    profile: TemplateProfile,
    model: Any,
    out: Union[Path, str, BinaryIO, None],
    *,
    template: Union[Path, str, None] = None,
    dry_run: bool = False,
) -> ExportResult:
    """Write ``model`` into a clone of the profile's template.

    Args:
        profile: Template profile naming registry, template and extent.
        model: Document as a nested camelCase dict or a pydantic document model.
        out: Output file, directory (file name from ``default_output_name``),
            binary stream, or ``None`` to keep the bytes in the result only.
        template: Template override; defaults to the profile's template path.
        dry_run: Plan the writes without producing an artifact.
    """

    registry = load_profile_registry(profile)
    template_path = Path(template) if template else profile.template_path

    target: Union[Path, BinaryIO, None]
    if isinstance(out, (str, Path)):
        target = Path(out)
        if target.is_dir():
            target = target / default_output_name(profile, model)
    else:
        target = out

    LOGGER.info(
        "Exporting %s with %d verified mappings into %s",
        profile.name,
        len(registry.verified_mappings()),
        template_path,
    )
    result = write_mapped(
        template_path,
        registry.sheet,
        registry.verified_mappings(),
        model,
        target,
        extent=profile.extent,
        dry_run=dry_run,
    )
    for warning in result.warnings:
        LOGGER.warning("%s: %s", warning.address, warning.message)
    return result


def export_contract_from_fund_plan(
    profile: TemplateProfile,
    fund_plan: Union[FundPlanData, Mapping[str, Any]],
    out: Union[Path, str, BinaryIO, None],
    *,
    overrides: Optional[Mapping[str, Any]] = None,
    template: Union[Path, str, None] = None,
    dry_run: bool = False,
    today: Optional[date] = None,
) -> ExportResult:
    """Pre-fill a contract from a fund plan and export it with ``profile``.

    Args:
        profile: Contract template profile.
        fund_plan: Fund plan model, or its camelCase document.
        out: Same as :func:`export_document`.
        overrides: camelCase contract fields replacing the pre-filled ones.
        template: Template override.
        dry_run: Plan the writes without producing an artifact.
        today: Contract date fallback when the plan has no building contract date.

    Raises:
        ProfileError: When ``profile`` is not a contract profile.
        pydantic.ValidationError: When the plan or the overrides do not fit their model.
    """

    if profile.model != "contract":
        raise ProfileError(f"Profile '{profile.name}' exports '{profile.model}', not a contract")
    plan = fund_plan if isinstance(fund_plan, FundPlanData) else FundPlanData.model_validate(fund_plan)
    contract = contract_from_fund_plan(plan, today=today)
    if overrides:
        contract = ContractData.model_validate({**contract.to_document(), **overrides})
    LOGGER.info("Contract pre-filled from fund plan '%s'", plan.tei_name)
    return export_document(profile, contract, out, template=template, dry_run=dry_run)


def export_both_documents(
    fund_plan_profile: TemplateProfile,
    contract_profile: TemplateProfile,
    fund_plan: Union[FundPlanData, Mapping[str, Any]],
    out_dir: Union[Path, str],
    *,
    overrides: Optional[Mapping[str, Any]] = None,
    dry_run: bool = False,
) -> Tuple[ExportResult, ExportResult]:
    """Export a fund plan and the contract pre-filled from it into ``out_dir``."""

    plan = fund_plan if isinstance(fund_plan, FundPlanData) else FundPlanData.model_validate(fund_plan)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    plan_result = export_document(fund_plan_profile, plan, out_dir, dry_run=dry_run)
    contract_result = export_contract_from_fund_plan(
        contract_profile, plan, out_dir, overrides=overrides, dry_run=dry_run
    )
    return plan_result, contract_result


__all__ = [
    "default_output_name",
    "export_both_documents",
    "export_contract_from_fund_plan",
    "export_document",
    "load_profile_registry",
]
