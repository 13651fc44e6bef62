from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from grant_analysis.data_cleaning import coerce_schema, derive_features

INCOME_LABELS = ["$0 - $25,000", "$26,000 - $51,000", "$52,000 - $77,000", "$100,000+"]
STATES = ["CA", "TX", "NY", "FL"]
CATEGORIES = ["Rent", "Mortgage", "Electric", "Auto", "Phone", "Medical"]


def make_raw_applications(n: int = 60, seed: int = 0) -> pd.DataFrame:
    """Synthetic sheet with the workbook's own headers."""
    rng = np.random.default_rng(seed)
    birth_year = rng.integers(1950, 2003, size=n).astype(float)
    birth_year[:12] = rng.integers(2004, 2010, size=12)
    requested = rng.uniform(200, 3000, size=n).round(2)
    granted = (0.6 * requested + rng.normal(0, 100, size=n)).round(2)
    requested[[15, 30]] = np.nan
    granted[[20, 40, 50]] = np.nan
    return pd.DataFrame({
        "Birth_year": birth_year,
        "Income": [INCOME_LABELS[i % len(INCOME_LABELS)] for i in range(n)],
        "Household_size": rng.integers(1, 8, size=n),
        "Date_of_application": pd.to_datetime("2022-01-01") + pd.to_timedelta(rng.integers(0, 330, size=n), unit="D"),
        "Amount_requested": requested,
        "Amount_granted": granted,
        "State": [STATES[i % len(STATES)] for i in range(n)],
        "Category": [CATEGORIES[i % len(CATEGORIES)] for i in range(n)],
    })


@pytest.fixture
def raw_applications() -> pd.DataFrame:
    return make_raw_applications()


@pytest.fixture
def applications(raw_applications: pd.DataFrame) -> pd.DataFrame:
    return derive_features(coerce_schema(raw_applications))


@pytest.fixture
def workbook(tmp_path, raw_applications: pd.DataFrame):
    path = tmp_path / "applications.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame({"note": ["cover sheet"]}).to_excel(writer, sheet_name="Cover", index=False)
        raw_applications.to_excel(writer, sheet_name="Applications", index=False)
    return path
