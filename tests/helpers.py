"""Shared builders for test payloads, plus a hand-driven clock."""
from leadbook.core.config import settings


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def lead_payload(**overrides):
    """A valid JSON create payload; override any field by its wire name."""
    payload = {
        "fullName": "Asha Verma",
        "email": "asha@example.com",
        "phone": "9876543210",
        "city": "Chandigarh",
        "propertyType": "Apartment",
        "bhk": "2",
        "purpose": "Buy",
        "budgetMin": 3000000,
        "budgetMax": 5000000,
        "timeline": "ZeroToThreeMonths",
        "source": "Website",
        "notes": "Prefers a park-facing unit",
        "tags": ["hot", "investor"],
    }
    payload.update(overrides)
    return payload


def csv_row(**overrides):
    """A valid CSV-derived row: every cell is a string."""
    row = {
        "fullName": "Rohit Sharma",
        "email": "",
        "phone": "9123456780",
        "city": "Mohali",
        "propertyType": "Villa",
        "bhk": "3",
        "purpose": "Buy",
        "budgetMin": "4000000",
        "budgetMax": "6000000",
        "timeline": "3-6m",
        "source": "Referral",
        "status": "",
        "notes": "",
        "tags": "family,referral",
    }
    row.update(overrides)
    return row


def login_as(client, user):
    client.cookies.set(settings.SESSION_COOKIE_NAME, str(user.id))
