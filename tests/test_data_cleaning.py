from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from grant_analysis.data_cleaning import (
    APPLICATION_SCHEMA,
    age_bracket,
    coerce_schema,
    derive_features,
    household_bracket,
    income_bracket,
    income_bracket_audit,
    load_applications,
)


def test_age_bracket_threshold_is_inclusive_at_2003() -> None:
    assert age_bracket(2003) == "Adult"
    assert age_bracket(1980.0) == "Adult"
    assert age_bracket(2004) == "Adolescent"
    assert age_bracket(np.nan) is None


def test_household_bracket_boundaries() -> None:
    assert [household_bracket(s) for s in [1, 2, 3, 4, 5, 9]] == [
        "Small", "Small", "Medium", "Medium", "Large", "Large",
    ]
    assert household_bracket(np.nan) is None


def test_income_bracket_compares_labels_as_text() -> None:
    assert income_bracket("$0 - $25,000") == "Low"
    assert income_bracket("$26,000 - $51,000") == "Medium"
    assert income_bracket("$52,000 - $77,000") == "High"
    # "$1..." sorts before "$2..." so the top range lands in Medium
    assert income_bracket("$100,000+") == "Medium"
    assert income_bracket(None) is None
    assert income_bracket("  ") is None


def test_derive_features_returns_new_frame_and_leaves_input_alone(raw_applications: pd.DataFrame) -> None:
    base = coerce_schema(raw_applications)
    snapshot = base.copy()

    derived = derive_features(base)

    pd.testing.assert_frame_equal(base, snapshot)
    assert list(base.columns) == [c.name for c in APPLICATION_SCHEMA]
    for col in ["age_bracket", "income_bracket", "household_bracket", "month"]:
        assert col in derived.columns
    pd.testing.assert_series_equal(derived["amount_granted"], base["amount_granted"])


def test_derived_brackets_hold_for_every_row(applications: pd.DataFrame) -> None:
    adult = applications["birth_year"] <= 2003
    assert (applications.loc[adult, "age_bracket"] == "Adult").all()
    assert (applications.loc[~adult, "age_bracket"] == "Adolescent").all()
    assert applications["age_bracket"].notna().all()

    size = applications["household_size"]
    hb = applications["household_bracket"]
    assert (hb[size <= 2] == "Small").all()
    assert (hb[(size >= 3) & (size <= 4)] == "Medium").all()
    assert (hb[size >= 5] == "Large").all()


def test_month_is_first_of_month_and_missing_stays_missing() -> None:
    raw = pd.DataFrame({
        "Birth_year": [1990, None],
        "Income": ["$0 - $25,000", None],
        "Household_size": [3, None],
        "Date_of_application": ["2022-03-17", "not a date"],
        "Amount_requested": [500, None],
        "Amount_granted": [None, 250],
        "State": ["CA", "TX"],
        "Category": ["Rent", "Phone"],
    })
    derived = derive_features(coerce_schema(raw))

    assert derived.loc[0, "month"] == pd.Timestamp("2022-03-01")
    assert pd.isna(derived.loc[1, "month"])
    assert pd.isna(derived.loc[1, "age_bracket"])
    assert pd.isna(derived.loc[1, "income_bracket"])
    assert pd.isna(derived.loc[1, "household_bracket"])


def test_coerce_schema_blanks_become_missing_and_bad_numbers_coerce() -> None:
    raw = pd.DataFrame({
        "Birth_year": ["1985", "n/a"],
        "Income": [" $0 - $25,000 ", ""],
        "Household_size": [2, 4],
        "Date_of_application": ["2022-01-05", "2022-02-07"],
        "Amount_requested": ["1200.50", "lots"],
        "Amount_granted": [800, None],
        "State": ["CA", "  "],
        "Category": ["Rent", "Auto"],
        "Notes": ["ignored", "ignored"],
    })
    df = coerce_schema(raw)

    assert "Notes" not in df.columns
    assert df.loc[0, "birth_year"] == 1985.0
    assert np.isnan(df.loc[1, "birth_year"])
    assert df.loc[0, "income_label"] == "$0 - $25,000"
    assert pd.isna(df.loc[1, "income_label"])
    assert df.loc[0, "amount_requested"] == pytest.approx(1200.50)
    assert np.isnan(df.loc[1, "amount_requested"])
    assert pd.isna(df.loc[1, "state"])


def test_coerce_schema_rejects_missing_headers(raw_applications: pd.DataFrame) -> None:
    with pytest.raises(ValueError, match="Amount_granted"):
        coerce_schema(raw_applications.drop(columns=["Amount_granted"]))


def test_load_applications_reads_second_sheet(workbook, raw_applications: pd.DataFrame) -> None:
    df = load_applications(str(workbook), sheet=1)

    assert len(df) == len(raw_applications)
    assert df["state"].tolist() == raw_applications["State"].tolist()
    assert pd.api.types.is_datetime64_any_dtype(df["application_date"])


def test_income_bracket_audit_lists_each_label_once(applications: pd.DataFrame) -> None:
    audit = income_bracket_audit(applications)

    assert audit["income_label"].is_unique
    assert int(audit["n"].sum()) == int(applications["income_label"].notna().sum())
    row = audit[audit["income_label"] == "$100,000+"].iloc[0]
    assert row["income_bracket"] == "Medium"
