"""Canonical data types shared by the import pipeline, store and charts."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

CATEGORIES = [
    "Groceries",
    "Rent",
    "Utilities",
    "Transportation",
    "Entertainment",
    "Healthcare",
    "Shopping",
    "Dining",
    "Travel",
    "Subscriptions",
    "Income",
    "Transfer",
    "Other",
]

CANONICAL_FIELDS = ("date", "amount", "description", "category")

DEFAULT_DESCRIPTION = "No Desc"
DEFAULT_CATEGORY = "Other"
IMPORT_ACCOUNT = "Imported"


class FinanceError(Exception):
    """Base class for errors raised by the finance core."""


class ParseError(FinanceError):
    """The uploaded file could not be read as delimited text with a header."""


class StorageError(FinanceError):
    """The durable store could not be written."""


class PurgeNotConfirmed(FinanceError):
    """A purge was requested without explicit confirmation."""


class TransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: datetime.date
    description: str = DEFAULT_DESCRIPTION
    amount: float = Field(gt=0, description="Absolute expense amount")
    category: str = DEFAULT_CATEGORY
    account: str = IMPORT_ACCOUNT


class FieldMapping(BaseModel):
    """Raw CSV header chosen for each canonical field."""

    date: str
    amount: str
    description: str
    category: str


@dataclass
class ParsedUpload:
    fields: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)
