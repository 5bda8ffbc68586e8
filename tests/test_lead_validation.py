import pytest

from leadbook.core.errors import ValidationFailed
from leadbook.models.enums import BHK, PropertyType, Status, Timeline, _BHK_REQUIRED, check_bhk_mapping
from leadbook.schemas.lead import MAX_BUDGET
from leadbook.services.lead_validation import (
    BHK_REQUIRED_MESSAGE,
    BUDGET_ORDER_MESSAGE,
    validate_lead,
)
from tests.helpers import csv_row, lead_payload


def _fields(exc_info):
    return [e["field"] for e in exc_info.value.errors]


class TestStrictVariant:

    def test_valid_payload_is_normalized(self):
        lead = validate_lead(lead_payload())
        assert lead.full_name == "Asha Verma"
        assert lead.property_type is PropertyType.APARTMENT
        assert lead.bhk is BHK.TWO
        assert lead.status is Status.NEW
        assert lead.tags == ["hot", "investor"]

    def test_snake_case_keys_are_accepted(self):
        lead = validate_lead({
            "full_name": "Asha Verma",
            "phone": "9876543210",
            "city": "Mohali",
            "property_type": "Plot",
            "purpose": "Rent",
            "timeline": "Exploring",
            "source": "Call",
        })
        assert lead.property_type is PropertyType.PLOT
        assert lead.tags == []

    def test_blank_email_means_absent(self):
        assert validate_lead(lead_payload(email="")).email is None

    @pytest.mark.parametrize("field,value", [
        ("fullName", "A"),
        ("fullName", "x" * 81),
        ("email", "not-an-email"),
        ("phone", "12345"),
        ("phone", "98765-43210"),
        ("phone", "1" * 16),
        ("city", "Delhi"),
        ("propertyType", "Castle"),
        ("purpose", "Lease"),
        ("timeline", "Someday"),
        ("source", "Billboard"),
        ("status", "Lost"),
        ("budgetMin", 0),
        ("budgetMax", -5),
        ("notes", "n" * 1001),
    ])
    def test_field_rules(self, field, value):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(lead_payload(**{field: value}))
        assert field in _fields(exc_info)

    def test_numbers_must_be_numbers(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(lead_payload(budgetMin="3000000"))
        assert _fields(exc_info) == ["budgetMin"]

    def test_budgets_beyond_32_bits_are_valid(self):
        lead = validate_lead(lead_payload(budgetMin=3_000_000_000, budgetMax=MAX_BUDGET))
        assert lead.budget_min == 3_000_000_000
        assert lead.budget_max == MAX_BUDGET

    def test_budget_above_storage_range_is_a_field_error(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(lead_payload(budgetMin=1, budgetMax=MAX_BUDGET + 1))
        assert _fields(exc_info) == ["budgetMax"]

    def test_every_field_error_is_reported(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(lead_payload(fullName="A", phone="1", city="Delhi"))
        assert set(_fields(exc_info)) == {"fullName", "phone", "city"}

    def test_missing_required_fields(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead({})
        assert {"fullName", "phone", "city", "propertyType", "purpose", "timeline", "source"} <= set(_fields(exc_info))


class TestCrossFieldRules:

    @pytest.mark.parametrize("property_type", list(PropertyType))
    def test_bhk_required_only_for_apartment_and_villa(self, property_type):
        payload = lead_payload(propertyType=property_type.value)
        payload.pop("bhk")
        if property_type in (PropertyType.APARTMENT, PropertyType.VILLA):
            with pytest.raises(ValidationFailed) as exc_info:
                validate_lead(payload)
            assert exc_info.value.errors == [{"field": "bhk", "message": BHK_REQUIRED_MESSAGE}]
        else:
            assert validate_lead(payload).bhk is None

    @pytest.mark.parametrize("property_type", [PropertyType.PLOT, PropertyType.OFFICE, PropertyType.RETAIL])
    def test_bhk_is_ignored_for_other_property_types(self, property_type):
        lead = validate_lead(lead_payload(propertyType=property_type.value, bhk="3"))
        assert lead.bhk is None

    @pytest.mark.parametrize("budget_min,budget_max,ok", [
        (100, 100, True),
        (100, 101, True),
        (101, 100, False),
        (5000000, 3000000, False),
    ])
    def test_budget_ordering(self, budget_min, budget_max, ok):
        payload = lead_payload(budgetMin=budget_min, budgetMax=budget_max)
        if ok:
            validate_lead(payload)
        else:
            with pytest.raises(ValidationFailed) as exc_info:
                validate_lead(payload)
            assert exc_info.value.errors == [{"field": "budgetMax", "message": BUDGET_ORDER_MESSAGE}]

    def test_single_budget_is_fine(self):
        payload = lead_payload(budgetMin=7000000)
        payload.pop("budgetMax")
        assert validate_lead(payload).budget_max is None

    def test_both_cross_field_violations_reported(self):
        payload = lead_payload(budgetMin=9, budgetMax=1)
        payload.pop("bhk")
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(payload)
        assert _fields(exc_info) == ["bhk", "budgetMax"]


class TestLenientVariant:

    def test_string_cells_are_coerced(self):
        lead = validate_lead(csv_row(), lenient=True)
        assert lead.budget_min == 4000000
        assert lead.budget_max == 6000000
        assert lead.timeline is Timeline.THREE_TO_SIX_MONTHS
        assert lead.tags == ["family", "referral"]
        assert lead.email is None
        assert lead.notes is None
        assert lead.status is Status.NEW

    def test_aliases_resolve(self):
        lead = validate_lead(csv_row(bhk="Two", timeline="0-3m"), lenient=True)
        assert lead.bhk is BHK.TWO
        assert lead.timeline is Timeline.ZERO_TO_THREE_MONTHS

    def test_blank_bhk_is_absent_and_still_required(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(csv_row(bhk=""), lenient=True)
        assert _fields(exc_info) == ["bhk"]

    def test_non_numeric_budget_rejected(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(csv_row(budgetMin="40 lakh"), lenient=True)
        assert _fields(exc_info) == ["budgetMin"]

    def test_oversized_budget_cell_rejected(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(csv_row(budgetMax=str(MAX_BUDGET + 1)), lenient=True)
        assert _fields(exc_info) == ["budgetMax"]

    def test_same_business_rules_as_strict(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_lead(csv_row(budgetMin="9", budgetMax="1"), lenient=True)
        assert exc_info.value.errors == [{"field": "budgetMax", "message": BUDGET_ORDER_MESSAGE}]

    def test_typed_json_values_still_accepted(self):
        lead = validate_lead(csv_row(budgetMin=4000000, tags=["a", "b"]), lenient=True)
        assert lead.budget_min == 4000000
        assert lead.tags == ["a", "b"]

    def test_non_object_row_is_a_validation_failure(self):
        with pytest.raises(ValidationFailed):
            validate_lead(["not", "a", "row"], lenient=True)


class TestBhkMapping:

    def test_every_property_type_has_a_rule(self):
        check_bhk_mapping(_BHK_REQUIRED)

    def test_missing_property_type_raises(self):
        partial = {p: True for p in PropertyType if p is not PropertyType.RETAIL}
        with pytest.raises(RuntimeError, match="Retail"):
            check_bhk_mapping(partial)
