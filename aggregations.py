"""Year-over-year views derived from the stored records.

Every function here is a pure read over ``(records, years)``: nothing is
cached and the input sequence is never modified. ``years`` is normally
``available_years(records)`` so the newest year comes first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from models import CATEGORIES, TransactionRecord

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Day 0 is unused (Jan 1 is day 1); day 366 only exists in leap years.
DAYS_IN_ARRAY = 367
PACE_STEP = 5
PACE_LAST_DAY = 365

# Upper bounds of the ratio-to-max for heatmap tiers 1..3; anything above is tier 4.
TIER_BOUNDS = (0.2, 0.4, 0.7)

LIST_COLUMNS = ["Date", "Description", "Category", "Amount", "Account", "ID"]


def records_frame(records: Sequence[TransactionRecord], limit: Optional[int] = None) -> pd.DataFrame:
    """Tabular copy of the records in insertion order."""
    rows = records if limit is None else records[:limit]
    data = [{
        "Date": r.date,
        "Description": r.description,
        "Category": r.category,
        "Amount": r.amount,
        "Account": r.account,
        "ID": r.id,
    } for r in rows]
    return pd.DataFrame(data, columns=LIST_COLUMNS)


def export_csv(records: Sequence[TransactionRecord]) -> bytes:
    return records_frame(records).to_csv(index=False).encode("utf-8")


def _prep(records: Sequence[TransactionRecord]) -> pd.DataFrame:
    """
    Adds the calendar keys every view groups on.
    """
    df = records_frame(records)
    df["Date"] = pd.to_datetime(df["Date"])
    df["Amount"] = pd.to_numeric(df["Amount"]).astype(float)
    df["Year"] = df["Date"].dt.year
    df["Month"] = df["Date"].dt.month - 1
    df["DayOfYear"] = df["Date"].dt.dayofyear
    return df


def available_years(records: Sequence[TransactionRecord]) -> List[int]:
    """Distinct calendar years present in the records, newest first."""
    return sorted({r.date.year for r in records}, reverse=True)


def _month_grid(records: Sequence[TransactionRecord], years: List[int]) -> pd.DataFrame:
    grid = pd.DataFrame(0.0, index=range(12), columns=years)
    df = _prep(records)
    df = df[df["Year"].isin(years)]
    if not df.empty:
        for (month, year), total in df.groupby(["Month", "Year"])["Amount"].sum().items():
            grid.at[int(month), int(year)] = total
    return grid.round(2)


def seasonality(records: Sequence[TransactionRecord], years: Iterable[int]) -> pd.DataFrame:
    """Monthly totals: one row per month (Jan..Dec), one column per year."""
    grid = _month_grid(records, list(years))
    grid.index = pd.Index(MONTH_NAMES, name="Month")
    grid.columns.name = "Year"
    return grid


def pace_of_spending(records: Sequence[TransactionRecord], years: Iterable[int]) -> pd.DataFrame:
    """
    Running total of spend by day of year, sampled every ``PACE_STEP`` days.

    Days without transactions carry the previous running total forward.
    """
    years = list(years)
    samples = list(range(0, PACE_LAST_DAY + 1, PACE_STEP))
    pace = pd.DataFrame(index=pd.Index(samples, name="Day"), columns=years, dtype=float)
    pace.columns.name = "Year"

    df = _prep(records)
    for year in years:
        daily = (
            df[df["Year"] == year]
            .groupby("DayOfYear")["Amount"]
            .sum()
            .reindex(range(DAYS_IN_ARRAY), fill_value=0.0)
            .astype(float)
        )
        pace[year] = daily.cumsum().loc[samples].round(0).to_numpy()
    return pace


def category_comparison(records: Sequence[TransactionRecord], years: Iterable[int]) -> pd.DataFrame:
    """
    Category totals per year.

    Known categories come first in their canonical order, then any other
    category alphabetically. Categories with nothing spent in every selected
    year are dropped; the rest are ranked by the newest year's total.
    """
    years = list(years)
    df = _prep(records)
    df = df[df["Year"].isin(years)]

    extra = sorted(set(df["Category"]) - set(CATEGORIES))
    table = pd.DataFrame(0.0, index=pd.Index(CATEGORIES + extra, name="Category"), columns=years)
    table.columns.name = "Year"
    if df.empty:
        return table.iloc[0:0]

    for (category, year), total in df.groupby(["Category", "Year"])["Amount"].sum().items():
        table.at[category, int(year)] = total

    table = table.round(2)
    table = table[(table > 0).any(axis=1)]
    return table.sort_values(by=max(years), ascending=False, kind="stable")


def intensity_tier(value: float, max_value: float) -> int:
    """Bucket a cell into 0 (empty) .. 4 (hottest) by its ratio to the grid max."""
    if value == 0:
        return 0
    ratio = value / max_value if max_value > 0 else 0
    for tier, bound in enumerate(TIER_BOUNDS, start=1):
        if ratio < bound:
            return tier
    return len(TIER_BOUNDS) + 1


@dataclass
class Heatmap:
    grid: pd.DataFrame
    max_value: float
    tiers: pd.DataFrame


def intensity_heatmap(records: Sequence[TransactionRecord], years: Iterable[int]) -> Heatmap:
    """Year x month totals plus the tier of each cell against the global max."""
    grid = _month_grid(records, list(years)).T
    grid.columns = MONTH_NAMES
    grid.index.name = "Year"

    max_value = float(grid.to_numpy().max()) if grid.size else 0.0
    tiers = grid.map(lambda v: intensity_tier(v, max_value))
    return Heatmap(grid=grid, max_value=max_value, tiers=tiers)


def five_number_summary(values: Iterable[float]) -> Dict[str, float]:
    """
    Min, quartiles and max using floor-index positions in the sorted values
    (no interpolation). An empty input summarizes to zeros.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return {"min": 0.0, "q1": 0.0, "median": 0.0, "q3": 0.0, "max": 0.0}
    return {
        "min": ordered[0],
        "q1": ordered[n // 4],
        "median": ordered[n // 2],
        "q3": ordered[(n * 3) // 4],
        "max": ordered[-1],
    }


def transaction_distribution(records: Sequence[TransactionRecord], years: Iterable[int]) -> pd.DataFrame:
    """Five-number summary of individual transaction amounts for each year."""
    years = list(years)
    rows = []
    for year in years:
        amounts = [r.amount for r in records if r.date.year == year]
        rows.append(five_number_summary(amounts))
    summary = pd.DataFrame(rows, index=pd.Index(years, name="Year"), columns=["min", "q1", "median", "q3", "max"])
    return summary.astype(float)
