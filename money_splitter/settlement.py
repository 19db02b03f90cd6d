"""
Settlement calculation - works out who owes whom for a single bill.
"""
import numpy as np
import pandas as pd
import structlog

from .models import (
    Bill,
    EqualSplitResult,
    IndividualSplitResult,
    Settlement,
    SettlementResult,
    SplitMode,
)

logger = structlog.get_logger(__name__)

# Amounts smaller than one cent are rounding noise.
EPSILON = 0.01


class SettlementCalculator:
    """
    Computes the transfers that settle a bill.

    Equal-mode bills with a known payer settle directly against the payer.
    Individual-mode bills use a greedy algorithm that matches the largest
    creditor with the largest debtor repeatedly until one side runs out.
    """

    def __init__(self, bill: Bill):
        self.bill = bill

    def calculate(self) -> SettlementResult:
        """
        Calculate the settlement result for the bill.

        Returns:
            EqualSplitResult or IndividualSplitResult, by the bill's split mode
        """
        if not self.bill.participants:
            raise ValueError("Cannot split a bill with no participants")

        if self.bill.split_mode is SplitMode.INDIVIDUAL:
            result = self._calculate_individual()
        else:
            result = self._calculate_equal()

        logger.debug(
            "settlements_calculated",
            bill_id=self.bill.id,
            mode=self.bill.split_mode.value,
            transfers=len(result.settlements or [])
        )
        return result

    def _calculate_equal(self) -> EqualSplitResult:
        bill = self.bill
        amount_per_person = bill.total_amount / len(bill.participants)

        payer = bill.designated_payer
        if not bill.has_participant(payer):
            return EqualSplitResult(amount_per_person=amount_per_person)

        settlements = []
        if amount_per_person >= EPSILON:
            settlements = [
                Settlement(
                    from_participant=name,
                    to_participant=payer,
                    amount=amount_per_person
                )
                for name in bill.participant_names
                if name != payer
            ]

        return EqualSplitResult(
            amount_per_person=amount_per_person,
            settlements=settlements
        )

    def _balances(self) -> tuple[float, np.ndarray]:
        paid = np.array(
            [p.paid_amount or 0.0 for p in self.bill.participants],
            dtype=np.float64
        )
        equal_share = self.bill.total_amount / len(paid)
        balances = paid - equal_share
        balances[np.abs(balances) < EPSILON] = 0.0
        return equal_share, balances

    def _calculate_individual(self) -> IndividualSplitResult:
        names = self.bill.participant_names
        equal_share, balances = self._balances()

        creditor_idx = np.flatnonzero(balances > 0)
        creditor_idx = creditor_idx[
            np.argsort(-balances[creditor_idx], kind='stable')
        ]
        debtor_idx = np.flatnonzero(balances < 0)
        debtor_idx = debtor_idx[
            np.argsort(balances[debtor_idx], kind='stable')
        ]

        creditors = tuple((names[k], float(balances[k])) for k in creditor_idx)
        debtors = tuple((names[k], float(-balances[k])) for k in debtor_idx)

        return IndividualSplitResult(
            equal_share=float(equal_share),
            balances={name: float(b) for name, b in zip(names, balances)},
            settlements=match_creditors_and_debtors(creditors, debtors)
        )

    def get_balances_dataframe(self) -> pd.DataFrame:
        """
        Get per-participant balances as a DataFrame.

        Positive balance = others owe them money
        Negative balance = they owe money to others
        Unknown contributions (equal mode without a known payer) are NaN.
        """
        bill = self.bill
        names = bill.participant_names

        if bill.split_mode is SplitMode.INDIVIDUAL:
            equal_share, balances = self._balances()
            paid = np.array(
                [p.paid_amount or 0.0 for p in bill.participants],
                dtype=np.float64
            )
        elif bill.has_participant(bill.designated_payer):
            equal_share = bill.total_amount / len(names)
            paid = np.where(
                np.array(names) == bill.designated_payer,
                bill.total_amount,
                0.0
            )
            balances = paid - equal_share
            balances[np.abs(balances) < EPSILON] = 0.0
        else:
            equal_share = bill.total_amount / len(names)
            paid = np.full(len(names), np.nan)
            balances = np.full(len(names), np.nan)

        return pd.DataFrame({
            'name': bill.participant_names,
            'paid': paid,
            'share': np.full(len(paid), equal_share),
            'balance': np.round(balances, 2)
        })

    def get_settlements_dataframe(self) -> pd.DataFrame:
        """
        Get settlements as a formatted DataFrame.

        Returns:
            DataFrame with from, to, amount columns
        """
        settlements = self.calculate().settlements

        if not settlements:
            return pd.DataFrame(columns=['from', 'to', 'amount'])

        return pd.DataFrame([s.to_dict() for s in settlements])


def match_creditors_and_debtors(
    creditors: tuple[tuple[str, float], ...],
    debtors: tuple[tuple[str, float], ...]
) -> list[Settlement]:
    """
    Greedily pair creditors with debtors.

    Args:
        creditors: (name, surplus) pairs, largest surplus first
        debtors: (name, deficit) pairs, largest deficit first; deficits positive

    Returns:
        Transfers from debtors to creditors, in the order they were matched
    """
    settlements = []
    i = j = 0
    credit_left = creditors[0][1] if creditors else 0.0
    debt_left = debtors[0][1] if debtors else 0.0

    while i < len(creditors) and j < len(debtors):
        amount = min(credit_left, debt_left)
        if amount >= EPSILON:
            settlements.append(Settlement(
                from_participant=debtors[j][0],
                to_participant=creditors[i][0],
                amount=amount
            ))

        credit_left -= amount
        debt_left -= amount

        if credit_left < EPSILON:
            i += 1
            if i < len(creditors):
                credit_left = creditors[i][1]
        if debt_left < EPSILON:
            j += 1
            if j < len(debtors):
                debt_left = debtors[j][1]

    return settlements


def calculate_settlements(bill: Bill) -> SettlementResult:
    """Calculate the settlement result for a bill."""
    return SettlementCalculator(bill).calculate()
