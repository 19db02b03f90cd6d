"""
Bill storage.

The store is handed to the application at startup. ``JsonBillStore`` loads
its file once and rewrites it after every change.
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import pandas as pd
import structlog

from .models import Bill

logger = structlog.get_logger(__name__)


class StoreError(Exception):
    """Raised when persisted bills cannot be read."""


class BillStore(ABC):
    """
    Abstract interface for bill storage.

    Bills come back in the order they were first saved.
    """

    @abstractmethod
    def list(self) -> list[Bill]:
        """Return all stored bills."""

    @abstractmethod
    def save(self, bill: Bill) -> None:
        """Store a bill, replacing any stored bill with the same id."""

    @abstractmethod
    def delete(self, bill_id: str) -> bool:
        """
        Delete a bill by id.

        Returns:
            True if a bill was removed, False if the id was unknown
        """

    def get(self, bill_id: str) -> Optional[Bill]:
        """Find a bill by id."""
        for bill in self.list():
            if bill.id == bill_id:
                return bill
        return None

    def summary_dataframe(self) -> pd.DataFrame:
        """Get a one-row-per-bill summary for listing."""
        bills = self.list()
        if not bills:
            return pd.DataFrame(
                columns=['id', 'name', 'mode', 'participants', 'total', 'payer']
            )

        data = []
        for bill in bills:
            data.append({
                'id': bill.id,
                'name': bill.name,
                'mode': bill.split_mode.value,
                'participants': len(bill.participants),
                'total': bill.total_amount,
                'payer': bill.designated_payer
            })

        return pd.DataFrame(data)


class InMemoryBillStore(BillStore):
    """Keeps bills in a list. Nothing survives the process."""

    def __init__(self, bills: Optional[list[Bill]] = None):
        self._bills: list[Bill] = list(bills or [])

    def list(self) -> list[Bill]:
        return list(self._bills)

    def save(self, bill: Bill) -> None:
        for i, existing in enumerate(self._bills):
            if existing.id == bill.id:
                self._bills[i] = bill
                break
        else:
            self._bills.append(bill)
        logger.info("bill_saved", bill_id=bill.id, name=bill.name)

    def delete(self, bill_id: str) -> bool:
        remaining = [b for b in self._bills if b.id != bill_id]
        removed = len(remaining) != len(self._bills)
        self._bills = remaining
        if removed:
            logger.info("bill_deleted", bill_id=bill_id)
        else:
            logger.warning("bill_not_found", bill_id=bill_id)
        return removed


class JsonBillStore(InMemoryBillStore):
    """
    Persists bills to a JSON file under a single store-wide key.

    File layout: ``{"bills": [<bill>, <bill>, ...]}``.
    """

    def __init__(self, path: Union[str, Path], key: str = "bills"):
        self.path = Path(path).expanduser()
        self.key = key
        super().__init__(self._load())

    def _load(self) -> list[Bill]:
        if not self.path.exists():
            logger.info("store_missing", path=str(self.path))
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            records = data.get(self.key, [])
            bills = [Bill.from_dict(r) for r in records]
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Cannot read bills from {self.path}: {e}") from e

        logger.info("store_loaded", path=str(self.path), bills=len(bills))
        return bills

    def _write(self) -> None:
        # A failed write leaves the previous file in place.
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({self.key: [b.to_dict() for b in self._bills]}, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def save(self, bill: Bill) -> None:
        super().save(bill)
        self._write()

    def delete(self, bill_id: str) -> bool:
        removed = super().delete(bill_id)
        if removed:
            self._write()
        return removed
