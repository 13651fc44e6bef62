# Data loading, schema coercion, and feature engineering
from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from .config import (
    XLSX_PATH, SHEET, ADULT_MAX_BIRTH_YEAR, INCOME_LOW_MAX, INCOME_MEDIUM_MAX,
    HOUSEHOLD_SMALL_MAX, HOUSEHOLD_LARGE_MIN, AGE_LEVELS, INCOME_LEVELS,
    HOUSEHOLD_LEVELS,
)

# -------------------------- Record Schema --------------------------
@dataclass(frozen=True)
class ColumnSpec:
    """One field of an application record: workbook header -> typed column."""
    source: str
    name: str
    kind: str          # "number" | "text" | "date"
    nullable: bool = True

APPLICATION_SCHEMA: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Birth_year", "birth_year", "number"),
    ColumnSpec("Income", "income_label", "text"),
    ColumnSpec("Household_size", "household_size", "number"),
    ColumnSpec("Date_of_application", "application_date", "date", nullable=False),
    ColumnSpec("Amount_requested", "amount_requested", "number"),
    ColumnSpec("Amount_granted", "amount_granted", "number"),
    ColumnSpec("State", "state", "text", nullable=False),
    ColumnSpec("Category", "category", "text"),
)

DERIVED_COLS = ["age_bracket", "income_bracket", "household_bracket", "month"]

# -------------------------- Helper Functions --------------------------
def _clean_text(s: pd.Series) -> pd.Series:
    out = s.astype(object).where(s.notna(), None)
    return out.map(lambda v: (v.strip() or None) if isinstance(v, str) else v)

def _coerce(s: pd.Series, kind: str) -> pd.Series:
    if kind == "number":
        return pd.to_numeric(s, errors="coerce").astype(float)
    if kind == "date":
        return pd.to_datetime(s, errors="coerce")
    return _clean_text(s)

def age_bracket(birth_year) -> Optional[str]:
    """Adult if born in ADULT_MAX_BIRTH_YEAR or earlier, else Adolescent."""
    if pd.isna(birth_year):
        return None
    return "Adult" if birth_year <= ADULT_MAX_BIRTH_YEAR else "Adolescent"

def income_bracket(label) -> Optional[str]:
    """
    Map an income range label to Low/Medium/High.

    The labels are compared as plain strings against the bracket upper labels,
    not parsed into dollar bounds, so the ordering is lexical: "$100,000+"
    sorts below "$26,000 - $51,000" and lands in Medium. Use
    `income_bracket_audit` to review how every label in the data maps.
    """
    if not isinstance(label, str) or not label.strip():
        return None
    if label <= INCOME_LOW_MAX:
        return "Low"
    if label <= INCOME_MEDIUM_MAX:
        return "Medium"
    return "High"

def household_bracket(size) -> Optional[str]:
    """Small (<=2), Medium (3-4), Large (>=5)."""
    if pd.isna(size):
        return None
    if size <= HOUSEHOLD_SMALL_MAX:
        return "Small"
    if size < HOUSEHOLD_LARGE_MIN:
        return "Medium"
    return "Large"

# -------------------------- Main Data Loading Functions --------------------------
def coerce_schema(df_raw: pd.DataFrame) -> pd.DataFrame:
    """
    Select and type the schema columns from a raw sheet.

    Args:
        df_raw: Frame as read from the workbook (source headers)

    Returns:
        pd.DataFrame: One typed column per ColumnSpec, renamed to field names

    Raises:
        ValueError: if any schema header is absent from the sheet
    """
    missing = [c.source for c in APPLICATION_SCHEMA if c.source not in df_raw.columns]
    if missing:
        raise ValueError(f"Required columns missing from sheet: {missing}")

    df = pd.DataFrame(index=df_raw.index)
    for col in APPLICATION_SCHEMA:
        df[col.name] = _coerce(df_raw[col.source], col.kind)

    for col in APPLICATION_SCHEMA:
        n_null = int(df[col.name].isna().sum())
        if n_null and not col.nullable:
            print(f"[schema] WARNING: {n_null} missing value(s) in non-nullable column '{col.name}'")

    return df.reset_index(drop=True)

def load_applications(xlsx_path: str = XLSX_PATH, sheet=SHEET) -> pd.DataFrame:
    """
    Load grant application records from the workbook.

    Returns:
        pd.DataFrame: Typed application table (base attributes only)
    """
    print(f"Loading data from {xlsx_path} (sheet {sheet})...")
    df_raw = pd.read_excel(xlsx_path, sheet_name=sheet)
    print(f"Raw data shape: {df_raw.shape}")

    df = coerce_schema(df_raw)
    print(f"Loaded {len(df):,} applications")
    return df

def derive_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of the table with the derived bracket and month columns.

    The input frame is left untouched. Missing base values give a missing
    derived value; no row is dropped here.
    """
    out = df.copy()
    out["age_bracket"] = pd.Categorical(df["birth_year"].map(age_bracket), categories=AGE_LEVELS)
    out["income_bracket"] = pd.Categorical(df["income_label"].map(income_bracket), categories=INCOME_LEVELS)
    out["household_bracket"] = pd.Categorical(
        df["household_size"].map(household_bracket), categories=HOUSEHOLD_LEVELS
    )
    out["month"] = df["application_date"].dt.to_period("M").dt.to_timestamp()

    print("Feature engineering completed.")
    for col in DERIVED_COLS:
        n_missing = int(out[col].isna().sum())
        if n_missing:
            print(f"  - {col}: {n_missing} row(s) undefined")
    return out

def income_bracket_audit(df: pd.DataFrame) -> pd.DataFrame:
    """Distinct income labels with the bracket each one was assigned and its row count."""
    sub = df[df["income_label"].notna()]
    if sub.empty:
        return pd.DataFrame(columns=["income_label", "income_bracket", "n"])
    audit = (sub.groupby("income_label")
                .size()
                .reset_index(name="n"))
    audit["income_bracket"] = audit["income_label"].map(income_bracket)
    return audit[["income_label", "income_bracket", "n"]].sort_values("income_label").reset_index(drop=True)

def get_analysis_dataframe(xlsx_path: str = XLSX_PATH, sheet=SHEET) -> pd.DataFrame:
    """Load the workbook and add derived features."""
    return derive_features(load_applications(xlsx_path, sheet))
