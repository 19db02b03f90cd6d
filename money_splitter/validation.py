"""
Input validation and the editable bill draft used by the CLI.

The settlement calculator trusts its input; everything it receives passes
through ``validate_bill`` first.
"""
import math
from dataclasses import dataclass, field
from typing import Optional

from .models import Bill, Participant, SplitMode


class InvalidBill(ValueError):
    """Raised when a bill is not fit to be saved or settled."""

    def __init__(self, issues: list[str]):
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))


def _bad_amount(value: Optional[float]) -> bool:
    return value is not None and (not math.isfinite(value) or value < 0)


def validate_bill(bill: Bill) -> Bill:
    """
    Check a bill before it is stored or handed to the calculator.

    Args:
        bill: Bill to check

    Returns:
        The same bill, unchanged

    Raises:
        InvalidBill: listing every problem found
    """
    issues = []

    if not bill.name.strip():
        issues.append("Bill name is required")

    if not bill.participants:
        issues.append("At least one participant is required")

    if _bad_amount(bill.total_amount):
        issues.append(f"Total amount must be a non-negative number, got {bill.total_amount}")

    seen = set()
    for p in bill.participants:
        if not p.name.strip():
            issues.append("Participant names cannot be blank")
            continue
        if p.name in seen:
            issues.append(f"Duplicate participant: {p.name}")
        seen.add(p.name)

        if bill.split_mode is SplitMode.INDIVIDUAL and _bad_amount(p.paid_amount):
            issues.append(
                f"Amount paid by {p.name} must be a non-negative number, "
                f"got {p.paid_amount}"
            )

    if issues:
        raise InvalidBill(issues)
    return bill


def parse_amount(text: str) -> float:
    """Parse a user-entered amount, rejecting negatives and non-numbers."""
    try:
        value = float(text)
    except ValueError:
        raise InvalidBill([f"Not a valid amount: {text!r}"]) from None
    if _bad_amount(value):
        raise InvalidBill([f"Amount must be a non-negative number, got {text}"])
    return value


@dataclass
class BillDraft:
    """A bill being filled in, before it is validated and saved."""
    name: str = ""
    total_amount: Optional[float] = None
    designated_payer: Optional[str] = None
    split_mode: SplitMode = SplitMode.EQUAL
    participants: list[Participant] = field(default_factory=list)

    def add_participant(self, name: str, paid_amount: Optional[float] = None) -> Participant:
        """Add a participant to the draft."""
        name = name.strip()
        if not name:
            raise InvalidBill(["Participant names cannot be blank"])
        participant = Participant(name=name, paid_amount=paid_amount)
        self.participants.append(participant)
        return participant

    def remove_participant(self, index: int) -> Participant:
        """Remove the participant at a zero-based position."""
        if not 0 <= index < len(self.participants):
            raise InvalidBill([f"No participant at position {index + 1}"])
        return self.participants.pop(index)

    @property
    def total(self) -> float:
        if self.split_mode is SplitMode.INDIVIDUAL:
            return sum(p.paid_amount or 0.0 for p in self.participants)
        return self.total_amount or 0.0

    def build(self) -> Bill:
        """
        Turn the draft into a validated bill.

        Raises:
            InvalidBill: if the draft is incomplete or inconsistent
        """
        if self.split_mode is SplitMode.EQUAL and self.total_amount is None:
            raise InvalidBill(["Total amount is required"])

        bill = Bill(
            name=self.name.strip(),
            total_amount=self.total,
            participants=tuple(self.participants),
            split_mode=self.split_mode,
            designated_payer=(self.designated_payer or "").strip() or None
        )
        return validate_bill(bill)
