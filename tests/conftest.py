"""Pytest configuration for test isolation.

The store writes to ``FINANCE_DATA_DIR`` on local disk, or to S3 when
``S3_BUCKET`` is set. Every test gets its own temporary data directory and
the S3 backend is switched off unless a test opts back in.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

import pytest

import storage
from models import TransactionRecord


@pytest.fixture(autouse=True)
def _isolate_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    monkeypatch.setattr(storage, "DATA_DIR", os.fspath(data_dir))
    monkeypatch.setattr(storage, "S3_BUCKET", None)
    return data_dir


@pytest.fixture
def make_record():
    counter = iter(range(10_000))

    def _make(day: str, amount: float, category: str = "Dining", description: str = "Coffee") -> TransactionRecord:
        return TransactionRecord(
            id=f"txn-test-{next(counter)}",
            date=date.fromisoformat(day),
            description=description,
            amount=amount,
            category=category,
        )

    return _make
