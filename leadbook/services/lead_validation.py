from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import ValidationError

from leadbook.core.errors import ValidationFailed, field_error
from leadbook.schemas.lead import LeadCreate, LeadCsvRow

BHK_REQUIRED_MESSAGE = "BHK is required for Apartment and Villa properties"
BUDGET_ORDER_MESSAGE = "Maximum budget must be greater than or equal to minimum budget"


def errors_from_pydantic(exc: ValidationError) -> List[Dict[str, Optional[str]]]:
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or None
        errors.append(field_error(field, err["msg"]))
    return errors


def budget_order_errors(budget_min: Optional[int], budget_max: Optional[int]) -> List[Dict[str, Optional[str]]]:
    if budget_min is not None and budget_max is not None and budget_max < budget_min:
        return [field_error("budgetMax", BUDGET_ORDER_MESSAGE)]
    return []


def business_rule_errors(lead: LeadCreate) -> List[Dict[str, Optional[str]]]:
    """Cross-field rules; every violation is reported, not just the first."""
    errors = []
    if lead.property_type.requires_bhk and lead.bhk is None:
        errors.append(field_error("bhk", BHK_REQUIRED_MESSAGE))
    errors.extend(budget_order_errors(lead.budget_min, lead.budget_max))
    return errors


def validate_lead(data: Any, *, lenient: bool = False, model: Optional[Type[LeadCreate]] = None) -> LeadCreate:
    """
    Validate one untyped record and return it normalized.

    `lenient=True` selects the CSV variant, which coerces string cells before
    the shared rules run. `model` overrides the schema (e.g. LeadUpdate).

    Raises:
        ValidationFailed: one {field, message} entry per violated field.
    """
    schema = model or (LeadCsvRow if lenient else LeadCreate)
    try:
        lead = schema.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(errors_from_pydantic(e))

    errors = business_rule_errors(lead)
    if errors:
        raise ValidationFailed(errors)

    # a bedroom count only means something for Apartment / Villa
    if not lead.property_type.requires_bhk and lead.bhk is not None:
        lead = lead.model_copy(update={"bhk": None})
    return lead


def lead_columns(lead: LeadCreate, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Validated payload as column values (enums stored by value)."""
    include = set(fields) if fields is not None else set(LeadCreate.model_fields)
    return lead.model_dump(mode="json", include=include)
