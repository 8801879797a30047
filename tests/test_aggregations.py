import pandas as pd
import pytest

from aggregations import (
    MONTH_NAMES,
    available_years,
    category_comparison,
    export_csv,
    five_number_summary,
    intensity_heatmap,
    intensity_tier,
    pace_of_spending,
    records_frame,
    seasonality,
    transaction_distribution,
)


@pytest.fixture
def records(make_record):
    return [
        make_record("2023-01-10", 100.0, category="Groceries"),
        make_record("2023-01-20", 50.25, category="Dining"),
        make_record("2023-03-01", 1200.0, category="Rent"),
        make_record("2023-12-31", 40.0, category="Travel"),
        make_record("2024-01-01", 30.0, category="Groceries"),
        make_record("2024-02-29", 80.0, category="Dining"),
        make_record("2024-02-29", 20.0, category="Pet Care"),
        make_record("2024-07-04", 400.0, category="Groceries"),
    ]


def test_available_years_newest_first(records):
    assert available_years(records) == [2024, 2023]
    assert available_years([]) == []


def test_seasonality_sums_by_month_and_year(records):
    view = seasonality(records, [2024, 2023])

    assert list(view.index) == MONTH_NAMES
    assert list(view.columns) == [2024, 2023]
    assert view.loc["Jan", 2023] == pytest.approx(150.25)
    assert view.loc["Feb", 2024] == pytest.approx(100.0)
    assert view.loc["Mar", 2023] == pytest.approx(1200.0)
    assert view.loc["Jun", 2024] == 0.0


def test_heatmap_cells_match_seasonality(records):
    years = available_years(records)
    season = seasonality(records, years)
    heatmap = intensity_heatmap(records, years)

    assert list(heatmap.grid.columns) == MONTH_NAMES
    pd.testing.assert_frame_equal(heatmap.grid.T, season, check_names=False)
    assert heatmap.max_value == pytest.approx(1200.0)


def test_heatmap_tiers(records):
    heatmap = intensity_heatmap(records, [2024, 2023])

    assert heatmap.tiers.loc[2023, "Mar"] == 4
    assert heatmap.tiers.loc[2024, "Jul"] == 2
    assert heatmap.tiers.loc[2024, "Jan"] == 1
    assert heatmap.tiers.loc[2024, "Jun"] == 0


@pytest.mark.parametrize(
    "value,expected",
    [(0, 0), (10, 1), (19.99, 1), (20, 2), (39, 2), (40, 3), (69, 3), (70, 4), (100, 4)],
)
def test_intensity_tier_bounds(value, expected):
    assert intensity_tier(value, 100) == expected


def test_pace_last_sample_equals_year_total(records):
    pace = pace_of_spending(records, [2024, 2023])

    assert list(pace.index) == list(range(0, 366, 5))
    assert pace.loc[0, 2024] == 0
    assert pace.loc[365, 2023] == pytest.approx(1390.25, abs=0.5)
    assert pace.loc[365, 2024] == pytest.approx(530.0, abs=0.5)


def test_pace_carries_running_total_across_empty_days(records):
    pace = pace_of_spending(records, [2024])

    # Jan 1 is day 1, Feb 29 is day 60, Jul 4 (leap year) is day 186.
    assert pace.loc[5, 2024] == 30
    assert pace.loc[55, 2024] == 30
    assert pace.loc[60, 2024] == 130
    assert pace.loc[185, 2024] == 130
    assert pace.loc[190, 2024] == 530
    assert pace[2024].is_monotonic_increasing


def test_category_comparison_orders_by_newest_year(records):
    view = category_comparison(records, [2024, 2023])

    assert list(view.index) == ["Groceries", "Dining", "Pet Care", "Rent", "Travel"]
    assert view.loc["Rent", 2024] == 0.0
    assert view.loc["Rent", 2023] == 1200.0
    assert view.loc["Groceries", 2024] == 430.0


def test_category_kept_when_only_older_year_has_spend(make_record):
    records = [
        make_record("2023-05-01", 1200.0, category="Rent"),
        make_record("2024-05-01", 10.0, category="Dining"),
    ]

    view = category_comparison(records, [2024, 2023])

    assert "Rent" in view.index
    assert list(view.index) == ["Dining", "Rent"]


def test_category_comparison_ranks_by_newest_year_in_any_order(make_record):
    records = [
        make_record("2023-04-01", 1000.0, category="Rent"),
        make_record("2024-04-01", 10.0, category="Rent"),
        make_record("2024-04-02", 500.0, category="Dining"),
    ]

    view = category_comparison(records, [2023, 2024])

    assert list(view.columns) == [2023, 2024]
    assert list(view.index) == ["Dining", "Rent"]


def test_category_comparison_drops_unselected_years(records):
    view = category_comparison(records, [2023])

    assert list(view.columns) == [2023]
    assert "Pet Care" not in view.index


def test_five_number_summary_uses_floor_indices():
    summary = five_number_summary([9, 1, 7, 3, 5])

    assert summary == {"min": 1, "q1": 3, "median": 5, "q3": 7, "max": 9}
    assert five_number_summary([4, 2]) == {"min": 2, "q1": 2, "median": 4, "q3": 4, "max": 4}
    assert five_number_summary([]) == {"min": 0.0, "q1": 0.0, "median": 0.0, "q3": 0.0, "max": 0.0}


def test_transaction_distribution_per_year(records):
    view = transaction_distribution(records, [2024, 2023, 2022])

    assert view.loc[2024].to_dict() == {"min": 20.0, "q1": 30.0, "median": 80.0, "q3": 400.0, "max": 400.0}
    assert view.loc[2022, "max"] == 0.0


def test_views_handle_an_empty_store():
    assert seasonality([], []).shape == (12, 0)
    assert pace_of_spending([], []).shape == (74, 0)
    assert category_comparison([], []).empty
    assert intensity_heatmap([], []).max_value == 0.0
    assert transaction_distribution([], []).empty


def test_views_do_not_mutate_input(records):
    before = list(records)

    years = available_years(records)
    seasonality(records, years)
    pace_of_spending(records, years)
    category_comparison(records, years)
    intensity_heatmap(records, years)
    transaction_distribution(records, years)

    assert records == before


def test_records_frame_and_export(records):
    frame = records_frame(records, limit=3)

    assert list(frame.columns) == ["Date", "Description", "Category", "Amount", "Account", "ID"]
    assert len(frame) == 3
    assert frame.iloc[2]["Category"] == "Rent"

    exported = export_csv(records).decode("utf-8").splitlines()
    assert exported[0] == "Date,Description,Category,Amount,Account,ID"
    assert len(exported) == len(records) + 1
