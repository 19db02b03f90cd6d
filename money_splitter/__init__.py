"""
Money Splitter - split shared bills and work out who owes whom.
"""
from .models import (
    Bill,
    EqualSplitResult,
    IndividualSplitResult,
    Participant,
    Settlement,
    SettlementResult,
    SplitMode,
)
from .settlement import SettlementCalculator, calculate_settlements
from .store import BillStore, InMemoryBillStore, JsonBillStore, StoreError
from .validation import BillDraft, InvalidBill, validate_bill

__all__ = [
    "Bill",
    "BillDraft",
    "BillStore",
    "EqualSplitResult",
    "InMemoryBillStore",
    "IndividualSplitResult",
    "InvalidBill",
    "JsonBillStore",
    "Participant",
    "Settlement",
    "SettlementCalculator",
    "SettlementResult",
    "SplitMode",
    "StoreError",
    "calculate_settlements",
    "validate_bill",
]
