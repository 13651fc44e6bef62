from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from grant_analysis.descriptive import (
    category_grant_totals,
    grouped_requested_vs_granted_plot,
    monthly_grant_totals,
    plot_top_states,
    requested_vs_granted_plot,
    state_application_counts,
    state_grant_impact,
)


def _frame() -> pd.DataFrame:
    return pd.DataFrame({
        "state": ["CA", "CA", "TX", "NY", "NY", "NY"],
        "amount_requested": [100.0, 200.0, 300.0, 16309.64, 500.0, 600.0],
        "amount_granted": [50.0, np.nan, 150.0, 900.0, 250.0, 300.0],
        "category": ["Rent", "Rent", "Auto", "Medical", "Phone", "Rent"],
        "month": pd.to_datetime(["2022-01-01", "2022-01-01", "2022-02-01", None,
                                 "2022-03-01", "2022-03-01"]),
        "age_bracket": pd.Categorical(["Adult", "Adolescent", "Adult", "Adult", "Adolescent", "Adult"],
                                      categories=["Adolescent", "Adult"]),
    })


def test_missing_grant_counts_for_applications_but_not_for_impact(tmp_path) -> None:
    df = _frame()
    counts = state_application_counts(df, str(tmp_path))
    impact = state_grant_impact(df)

    assert counts["CA"] == 2
    assert impact.loc["CA", "n"] == 1
    assert impact.loc["CA", "mean_granted"] == pytest.approx(50.0)
    assert (tmp_path / "state_application_counts.png").exists()


def test_state_impact_is_sorted_by_total(tmp_path) -> None:
    impact = state_grant_impact(_frame())

    assert impact.index.tolist() == ["NY", "TX", "CA"]
    assert impact.loc["NY", "total_granted"] == pytest.approx(1450.0)

    top = plot_top_states(impact, str(tmp_path), top_n=2)
    assert set(top.index) == {"NY", "TX"}
    assert (tmp_path / "top_states_total_granted.png").exists()


def test_monthly_totals_skip_undated_rows_and_treat_missing_grant_as_zero(tmp_path) -> None:
    totals = monthly_grant_totals(_frame(), str(tmp_path))

    assert totals.loc[pd.Timestamp("2022-01-01")] == pytest.approx(50.0)
    assert totals.loc[pd.Timestamp("2022-03-01")] == pytest.approx(550.0)
    assert len(totals) == 3


def test_category_totals_only_cover_top_categories(tmp_path) -> None:
    totals = category_grant_totals(_frame(), str(tmp_path))

    assert "Medical" not in totals.index
    assert totals.loc["Rent"] == pytest.approx(350.0)
    assert (tmp_path / "category_grant_totals.png").exists()


def test_empty_inputs_are_no_ops(tmp_path) -> None:
    df = _frame().iloc[0:0]

    assert state_application_counts(df, str(tmp_path)).empty
    assert plot_top_states(state_grant_impact(df), str(tmp_path)).empty
    assert monthly_grant_totals(df, str(tmp_path)).empty
    assert category_grant_totals(df, str(tmp_path)).empty
    assert requested_vs_granted_plot(df, str(tmp_path)) == 0
    assert list(tmp_path.iterdir()) == []


def test_scatter_plots_leave_out_outlier_requests(tmp_path) -> None:
    df = _frame()

    assert requested_vs_granted_plot(df, str(tmp_path)) == 4
    assert grouped_requested_vs_granted_plot(df, "age_bracket", str(tmp_path), "by age") == 4
    assert (tmp_path / "requested_vs_granted.png").exists()
    assert (tmp_path / "requested_vs_granted_by_age_bracket.png").exists()
