# models/enums.py
from enum import Enum


class LeadEnum(str, Enum):
    """String-valued enum whose members may also be looked up by alias."""

    @classmethod
    def _aliases(cls) -> dict:
        return {}

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            target = cls._aliases().get(value.strip())
            if target is not None:
                return cls(target)
        return None

    @classmethod
    def values(cls) -> list:
        return [member.value for member in cls]


class City(LeadEnum):
    CHANDIGARH = "Chandigarh"
    MOHALI = "Mohali"
    ZIRAKPUR = "Zirakpur"
    PANCHKULA = "Panchkula"
    OTHER = "Other"


class PropertyType(LeadEnum):
    APARTMENT = "Apartment"
    VILLA = "Villa"
    PLOT = "Plot"
    OFFICE = "Office"
    RETAIL = "Retail"

    @property
    def requires_bhk(self) -> bool:
        return _BHK_REQUIRED[self]


class BHK(LeadEnum):
    STUDIO = "Studio"
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"

    @classmethod
    def _aliases(cls) -> dict:
        return {"One": "1", "Two": "2", "Three": "3", "Four": "4"}


class Purpose(LeadEnum):
    BUY = "Buy"
    RENT = "Rent"


class Timeline(LeadEnum):
    ZERO_TO_THREE_MONTHS = "ZeroToThreeMonths"
    THREE_TO_SIX_MONTHS = "ThreeToSixMonths"
    EXPLORING = "Exploring"

    @classmethod
    def _aliases(cls) -> dict:
        return {"0-3m": "ZeroToThreeMonths", "3-6m": "ThreeToSixMonths"}


class Source(LeadEnum):
    WEBSITE = "Website"
    REFERRAL = "Referral"
    WALK_IN = "WalkIn"
    CALL = "Call"
    OTHER = "Other"


class Status(LeadEnum):
    NEW = "New"
    QUALIFIED = "Qualified"
    CONTACTED = "Contacted"
    VISITED = "Visited"
    NEGOTIATION = "Negotiation"
    CONVERTED = "Converted"
    DROPPED = "Dropped"


_BHK_REQUIRED = {
    PropertyType.APARTMENT: True,
    PropertyType.VILLA: True,
    PropertyType.PLOT: False,
    PropertyType.OFFICE: False,
    PropertyType.RETAIL: False,
}


def check_bhk_mapping(mapping: dict) -> None:
    """Every property type must state whether it takes a bedroom count."""
    missing = set(PropertyType) - set(mapping)
    if missing:
        names = ", ".join(sorted(p.value for p in missing))
        raise RuntimeError(f"PropertyType without a BHK rule: {names}")


check_bhk_mapping(_BHK_REQUIRED)


def check_constraint_sql(column: str, enum_cls) -> str:
    quoted = ",".join(f"'{v}'" for v in enum_cls.values())
    return f"{column} IN ({quoted})"
