"""Document export service package."""

from .exporter import (
    default_output_name,
    export_both_documents,
    export_contract_from_fund_plan,
    export_document,
    load_profile_registry,
)

__all__ = [
    "default_output_name",
    "export_both_documents",
    "export_contract_from_fund_plan",
    "export_document",
    "load_profile_registry",
]
