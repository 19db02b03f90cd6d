"""
Data models for the Money Splitter application.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Union
import uuid


class SplitMode(Enum):
    """Supported ways of splitting a bill."""
    EQUAL = "equal"
    INDIVIDUAL = "individual"


@dataclass(frozen=True)
class Participant:
    """A person taking part in a bill."""
    name: str
    paid_amount: Optional[float] = None  # only meaningful in individual mode

    def to_dict(self) -> dict:
        return {'name': self.name, 'paid_amount': self.paid_amount}

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        paid = data.get('paid_amount')
        return cls(
            name=data['name'],
            paid_amount=float(paid) if paid is not None else None
        )


def _new_bill_id() -> str:
    return str(uuid.uuid4())[:8]


@dataclass(frozen=True)
class Bill:
    """
    A shared expense split between participants.

    In equal mode ``total_amount`` is supplied by the user. In individual
    mode it is always the sum of the participants' paid amounts.
    """
    name: str
    total_amount: float = 0.0
    participants: tuple[Participant, ...] = ()
    split_mode: SplitMode = SplitMode.EQUAL
    designated_payer: Optional[str] = None
    id: str = field(default_factory=_new_bill_id)
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, 'participants', tuple(self.participants))
        if self.split_mode is SplitMode.INDIVIDUAL:
            derived = sum(p.paid_amount or 0.0 for p in self.participants)
            object.__setattr__(self, 'total_amount', float(derived))

    @classmethod
    def equal(
        cls,
        name: str,
        total_amount: float,
        participants: Iterable[Union[str, Participant]],
        designated_payer: Optional[str] = None
    ) -> "Bill":
        """Create a bill split equally, optionally fronted by one payer."""
        return cls(
            name=name,
            total_amount=float(total_amount),
            participants=tuple(_as_participant(p) for p in participants),
            split_mode=SplitMode.EQUAL,
            designated_payer=designated_payer or None
        )

    @classmethod
    def individual(cls, name: str, paid_amounts: dict[str, float]) -> "Bill":
        """
        Create a bill where each participant paid part of the total.

        Args:
            name: Bill name
            paid_amounts: Ordered mapping of participant name to amount paid
        """
        return cls(
            name=name,
            participants=tuple(
                Participant(name=n, paid_amount=float(amt))
                for n, amt in paid_amounts.items()
            ),
            split_mode=SplitMode.INDIVIDUAL
        )

    @property
    def participant_names(self) -> list[str]:
        return [p.name for p in self.participants]

    def has_participant(self, name: Optional[str]) -> bool:
        return name is not None and name in self.participant_names

    def to_dict(self) -> dict:
        """Serialize to the plain-data shape kept in the bill store."""
        return {
            'id': self.id,
            'name': self.name,
            'total_amount': self.total_amount,
            'designated_payer': self.designated_payer,
            'split_mode': self.split_mode.value,
            'participants': [p.to_dict() for p in self.participants],
            'created_at': self.created_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Bill":
        created = data.get('created_at')
        return cls(
            id=str(data['id']),
            name=data['name'],
            total_amount=float(data.get('total_amount', 0.0)),
            designated_payer=data.get('designated_payer') or None,
            split_mode=SplitMode(data.get('split_mode', SplitMode.EQUAL.value)),
            participants=tuple(
                Participant.from_dict(p) for p in data.get('participants', [])
            ),
            created_at=(
                datetime.fromisoformat(created) if created else datetime.now()
            )
        )


def _as_participant(value: Union[str, Participant]) -> Participant:
    if isinstance(value, Participant):
        return value
    return Participant(name=value)


@dataclass(frozen=True)
class Settlement:
    """Represents a payment from one participant to another."""
    from_participant: str
    to_participant: str
    amount: float

    def to_dict(self) -> dict:
        return {
            'from': self.from_participant,
            'to': self.to_participant,
            'amount': self.amount
        }


@dataclass(frozen=True)
class EqualSplitResult:
    """
    Outcome of an equal-mode bill.

    ``settlements`` is None when nobody is known to have fronted the money.
    """
    amount_per_person: float
    settlements: Optional[list[Settlement]] = None

    mode = SplitMode.EQUAL

    def to_dict(self) -> dict:
        data = {
            'mode': self.mode.value,
            'amount_per_person': self.amount_per_person
        }
        if self.settlements is not None:
            data['settlements'] = [s.to_dict() for s in self.settlements]
        return data


@dataclass(frozen=True)
class IndividualSplitResult:
    """Outcome of an individual-mode bill."""
    equal_share: float
    balances: dict[str, float]
    settlements: list[Settlement] = field(default_factory=list)

    mode = SplitMode.INDIVIDUAL

    def to_dict(self) -> dict:
        return {
            'mode': self.mode.value,
            'equal_share': self.equal_share,
            'balances': dict(self.balances),
            'settlements': [s.to_dict() for s in self.settlements]
        }


SettlementResult = Union[EqualSplitResult, IndividualSplitResult]
