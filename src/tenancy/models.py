"""
Data models for tenancy verification.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

# Declaration order drives the order of mismatch issues in a report
CLAIM_FIELDS = ("fullName", "address", "rent", "startDate", "endDate")

ISO_DATE_FORMAT = "%Y-%m-%d"


def _unwrap(value: Any) -> Any:
    """Form decoders hand over either a scalar or a list of values."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


@dataclass(frozen=True)
class UserClaim:
    """Tenancy facts asserted by the user, checked against the document"""
    full_name: str
    address: str
    rent: str
    start_date: str
    end_date: str

    @classmethod
    def from_form(cls, fields: Mapping[str, Any]) -> "UserClaim":
        """
        Build a validated claim from raw form fields.

        Multi-valued fields are reduced to their first value and every value
        is trimmed, so the engine never sees ambiguous input.

        Args:
            fields: Mapping keyed by fullName, address, rent, startDate, endDate

        Returns:
            UserClaim

        Raises:
            ValidationError: If a field is missing, empty or malformed
        """
        values = {}
        for name in CLAIM_FIELDS:
            value = _unwrap(fields.get(name))
            values[name] = "" if value is None else str(value).strip()

        claim = cls(
            full_name=values["fullName"],
            address=values["address"],
            rent=values["rent"],
            start_date=values["startDate"],
            end_date=values["endDate"],
        )
        claim.validate()
        return claim

    def as_fields(self) -> Dict[str, str]:
        return {
            "fullName": self.full_name,
            "address": self.address,
            "rent": self.rent,
            "startDate": self.start_date,
            "endDate": self.end_date,
        }

    def rent_amount(self) -> Decimal:
        """Claimed rent as a Decimal (grouping commas are not accepted)."""
        try:
            return Decimal(self.rent.strip())
        except InvalidOperation:
            raise ValidationError(f"Rent '{self.rent}' is not a valid amount")

    def validate(self) -> None:
        """
        Reject claims that cannot be verified meaningfully.

        An empty value would trivially match any document text, so every
        field is required.

        Raises:
            ValidationError: On the first invalid field
        """
        for name, value in self.as_fields().items():
            if value is None or not str(value).strip():
                raise ValidationError(f"Claim field '{name}' is required")

        rent = self.rent_amount()
        if not rent.is_finite() or rent < 0:
            raise ValidationError(f"Rent '{self.rent}' is not a valid amount")

        for name in ("startDate", "endDate"):
            value = self.as_fields()[name].strip()
            try:
                datetime.strptime(value, ISO_DATE_FORMAT)
            except ValueError:
                raise ValidationError(
                    f"Claim field '{name}' must be a YYYY-MM-DD date, got '{value}'"
                )


@dataclass(frozen=True)
class Tenant:
    full_name: Optional[str] = None


@dataclass(frozen=True)
class RentTerms:
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    due_day: Optional[str] = None
    frequency: Optional[str] = None
    payment_details: Optional[str] = None


@dataclass(frozen=True)
class TenancyTerm:
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration_months: Optional[int] = None


@dataclass(frozen=True)
class Deposit:
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    protected_by: Optional[str] = None


@dataclass(frozen=True)
class Agent:
    name: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class Landlord:
    name: Optional[str] = None
    agent: Optional[Agent] = None


def _section(data: Mapping, key: str) -> Mapping:
    """Nested object or an empty mapping when absent or of the wrong type."""
    value = data.get(key)
    if isinstance(value, Mapping):
        return value
    if value is not None:
        logger.debug("Ignoring '%s' in extraction response: expected object, got %s",
                     key, type(value).__name__)
    return {}


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _amount(value: Any) -> Optional[Decimal]:
    """Parse a money amount, tolerating currency symbols and grouping commas."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        # json.loads lets NaN and Infinity through as floats
        amount = Decimal(str(value))
        return amount if amount.is_finite() else None
    if isinstance(value, str):
        cleaned = value.strip().lstrip("£$").replace(",", "").strip()
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None
    return None


def _integer(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, ArithmeticError):
        return None


def _decimal_out(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class ExtractedRecord:
    """Structured projection of a tenancy agreement"""
    tenants: Tuple[Tenant, ...] = ()
    property_address: Optional[str] = None
    rent: RentTerms = field(default_factory=RentTerms)
    tenancy: TenancyTerm = field(default_factory=TenancyTerm)
    deposit: Deposit = field(default_factory=Deposit)
    landlord: Landlord = field(default_factory=Landlord)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExtractedRecord":
        """
        Project a parsed extraction response onto the record.

        Missing, unknown or wrongly typed fields become None; nothing here raises
        for a mapping input.
        """
        tenants = []
        raw_tenants = data.get("tenants")
        if isinstance(raw_tenants, list):
            for entry in raw_tenants:
                if isinstance(entry, Mapping):
                    name = _text(entry.get("fullName"))
                else:
                    name = _text(entry)
                if name:
                    tenants.append(Tenant(full_name=name))

        rent = _section(data, "rent")
        tenancy = _section(data, "tenancy")
        deposit = _section(data, "deposit")
        landlord = _section(data, "landlord")
        agent = _section(landlord, "agent")

        return cls(
            tenants=tuple(tenants),
            property_address=_text(_section(data, "property").get("address")),
            rent=RentTerms(
                amount=_amount(rent.get("amount")),
                currency=_text(rent.get("currency")),
                due_day=_text(rent.get("dueDay")),
                frequency=_text(rent.get("frequency")),
                payment_details=_text(rent.get("paymentDetails")),
            ),
            tenancy=TenancyTerm(
                start_date=_text(tenancy.get("startDate")),
                end_date=_text(tenancy.get("endDate")),
                duration_months=_integer(tenancy.get("durationMonths")),
            ),
            deposit=Deposit(
                amount=_amount(deposit.get("amount")),
                currency=_text(deposit.get("currency")),
                protected_by=_text(deposit.get("protectedBy")),
            ),
            landlord=Landlord(
                name=_text(landlord.get("name")),
                agent=Agent(
                    name=_text(agent.get("name")),
                    address=_text(agent.get("address")),
                ) if agent else None,
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        agent = self.landlord.agent
        return {
            "tenants": [{"fullName": t.full_name} for t in self.tenants],
            "property": {"address": self.property_address},
            "rent": {
                "amount": _decimal_out(self.rent.amount),
                "currency": self.rent.currency,
                "dueDay": self.rent.due_day,
                "frequency": self.rent.frequency,
                "paymentDetails": self.rent.payment_details,
            },
            "tenancy": {
                "startDate": self.tenancy.start_date,
                "endDate": self.tenancy.end_date,
                "durationMonths": self.tenancy.duration_months,
            },
            "deposit": {
                "amount": _decimal_out(self.deposit.amount),
                "currency": self.deposit.currency,
                "protectedBy": self.deposit.protected_by,
            },
            "landlord": {
                "name": self.landlord.name,
                "agent": {"name": agent.name, "address": agent.address} if agent else None,
            },
        }


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of one verification request; never mutated once built"""
    match: Mapping[str, bool]
    extracted_deposit: Optional[str]
    issues: Tuple[str, ...]
    extracted: Optional[ExtractedRecord] = None
    strategy: str = "direct"

    def __post_init__(self):
        object.__setattr__(self, "match", MappingProxyType(dict(self.match)))
        object.__setattr__(self, "issues", tuple(self.issues))

    @property
    def success(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extracted": self.extracted.to_dict() if self.extracted else None,
            "match": dict(self.match),
            "extractedDeposit": self.extracted_deposit,
            "issues": list(self.issues),
            "success": self.success,
            "strategy": self.strategy,
        }
