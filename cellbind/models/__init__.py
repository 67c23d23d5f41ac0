"""Pydantic document models bound to the packaged templates."""

from __future__ import annotations

from typing import Any, Dict, List, Type

from pydantic import ValidationError

from .base import DocumentModel
from .contract import ContractData, contract_from_fund_plan
from .fund_plan import FundPlanData

MODEL_TYPES: Dict[str, Type[DocumentModel]] = {
    "fund_plan": FundPlanData,
    "contract": ContractData,
}


def model_for(kind: str) -> Type[DocumentModel]:
    try:
        return MODEL_TYPES[kind]
    except KeyError:
        raise KeyError(f"Unknown document model '{kind}' (available: {', '.join(sorted(MODEL_TYPES))})") from None


def reference_instance(kind: str) -> DocumentModel:
    """Return a fully populated instance whose leaf paths define the model's shape."""

    return model_for(kind)()


def check_document(kind: str, payload: Dict[str, Any]) -> List[str]:
    """Validate a document payload against its model without altering it.

    Returns human readable problems; an empty list means the payload fits the model.
    """

    try:
        model_for(kind).model_validate(payload)
    except ValidationError as exc:
        return [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
    return []


__all__ = [
    "DocumentModel",
    "FundPlanData",
    "ContractData",
    "MODEL_TYPES",
    "model_for",
    "reference_instance",
    "check_document",
    "contract_from_fund_plan",
]
