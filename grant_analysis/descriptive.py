# Descriptive summaries and their charts
import os
from typing import List, Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .config import DPI, TOP_CATEGORIES, TOP_N_STATES, OUTLIER_REQUESTS

def _skip(tag: str, reason: str):
    print(f"[{tag}] Skipped: {reason}")

def _save(fig, output_dir: str, fname: str) -> str:
    path = os.path.join(output_dir, fname)
    fig.tight_layout()
    fig.savefig(path, dpi=DPI)
    plt.close(fig)
    return path

def _fit_line(x: np.ndarray, y: np.ndarray):
    """Least-squares line through (x, y); None when x has fewer than 2 distinct values."""
    if len(np.unique(x)) < 2:
        return None
    slope, intercept = np.polyfit(x, y, 1)
    xs = np.linspace(x.min(), x.max(), 50)
    return xs, intercept + slope * xs

# -------------------------- Geographic --------------------------
def state_application_counts(df: pd.DataFrame, output_dir: str) -> pd.Series:
    """Number of applications per state; every row counts, whatever its amounts."""
    counts = df["state"].dropna().value_counts().sort_index()
    if counts.empty:
        _skip("states", "no state values")
        return counts

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.bar(counts.index.astype(str), counts.values, color="purple", edgecolor="white")
    ax.tick_params(axis="x", labelsize=6, rotation=30)
    ax.set_ylabel("Number of Applications")
    ax.set_title("Geographic Distribution of Grant Applications")
    _save(fig, output_dir, "state_application_counts.png")

    print(f"[states] {len(counts)} states, {int(counts.sum()):,} applications")
    return counts

def state_grant_impact(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-state grant impact over rows with a granted amount.

    Returns:
        DataFrame indexed by state with mean_granted, total_granted, n,
        sorted by total_granted descending
    """
    granted = df[df["amount_granted"].notna() & df["state"].notna()]
    if granted.empty:
        return pd.DataFrame(columns=["mean_granted", "total_granted", "n"])
    impact = (granted.groupby("state")["amount_granted"]
                     .agg(mean_granted="mean", total_granted="sum", n="size")
                     .sort_values("total_granted", ascending=False))
    return impact

def plot_top_states(impact: pd.DataFrame, output_dir: str, top_n: int = TOP_N_STATES) -> pd.DataFrame:
    """Horizontal bars for the top states by total granted (ties at the cut are kept)."""
    if impact.empty:
        _skip("top_states", "no granted amounts")
        return impact
    top = impact.nlargest(top_n, "total_granted", keep="all").sort_values("total_granted")

    fig, ax = plt.subplots(figsize=(8, 5))
    colors = plt.cm.Set1(np.arange(len(top)) % 9)
    ax.barh(top.index.astype(str), top["total_granted"].values, color=colors)
    ax.set_xlabel("Total Grants ($)")
    ax.set_ylabel("State")
    ax.set_title("States with Highest Grant Allocation")
    _save(fig, output_dir, "top_states_total_granted.png")

    print(f"[top_states] Top {top_n} by total granted:")
    print(top.sort_values("total_granted", ascending=False).round(2).to_string())
    return top

# -------------------------- Time Series --------------------------
def monthly_grant_totals(df: pd.DataFrame, output_dir: str) -> pd.Series:
    """Total granted per application month; months with only missing grants total 0."""
    dated = df[df["month"].notna()]
    if dated.empty:
        _skip("monthly", "no application dates")
        return pd.Series(dtype=float, name="total_granted")
    totals = dated.groupby("month")["amount_granted"].sum(min_count=0).sort_index()
    totals.name = "total_granted"

    fig, ax = plt.subplots(figsize=(10, 4.5))
    ax.plot(totals.index, totals.values, color="blue", linewidth=1.5)
    ax.scatter(totals.index, totals.values, color="red", zorder=3)
    ax.set_xlabel("Month")
    ax.set_ylabel("Total Grants ($)")
    ax.set_title("Temporal Trends in Grant Allocation")
    ax.grid(alpha=0.3)
    _save(fig, output_dir, "monthly_grant_totals.png")

    print(f"[monthly] {len(totals)} months, {totals.sum():,.2f} granted in total")
    return totals

# -------------------------- Categories --------------------------
def category_grant_totals(df: pd.DataFrame, output_dir: str,
                          categories: Optional[List[str]] = None) -> pd.Series:
    """Total granted for each of the top categories, drawn as a pie."""
    categories = categories or TOP_CATEGORIES
    sub = df[df["category"].isin(categories)]
    if sub.empty:
        _skip("categories", "no rows in the top categories")
        return pd.Series(dtype=float, name="total_granted")
    totals = sub.groupby("category")["amount_granted"].sum(min_count=0)
    totals.name = "total_granted"

    if totals.sum() <= 0:
        _skip("categories", "no granted amounts to chart")
        return totals

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.pie(totals.values, labels=totals.index.astype(str), autopct="%1.1f%%", startangle=90)
    ax.set_title("Distribution of Grants by Category")
    ax.axis("equal")
    _save(fig, output_dir, "category_grant_totals.png")

    print("[categories] Total granted by category:")
    print(totals.round(2).to_string())
    return totals

# -------------------------- Requested vs Granted --------------------------
def _amount_pairs(df: pd.DataFrame, extra: Optional[str] = None) -> pd.DataFrame:
    cols = ["amount_requested", "amount_granted"] + ([extra] if extra else [])
    sub = df[cols].dropna()
    return sub[~sub["amount_requested"].isin(OUTLIER_REQUESTS)]

def requested_vs_granted_plot(df: pd.DataFrame, output_dir: str) -> int:
    """Scatter of granted on requested with the least-squares line. Returns points drawn."""
    sub = _amount_pairs(df)
    if sub.empty:
        _skip("requested_vs_granted", "no complete requested/granted pairs")
        return 0
    x = sub["amount_requested"].to_numpy()
    y = sub["amount_granted"].to_numpy()

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.scatter(x, y, color="purple", s=14)
    line = _fit_line(x, y)
    if line is not None:
        ax.plot(*line, color="blue")
    ax.set_xlabel("Amount Requested ($)")
    ax.set_ylabel("Amount Granted ($)")
    ax.set_title("Relationship Between Requested and Granted Amounts")
    _save(fig, output_dir, "requested_vs_granted.png")
    return len(sub)

def grouped_requested_vs_granted_plot(df: pd.DataFrame, group_col: str, output_dir: str,
                                      title: str) -> int:
    """One facet per level of `group_col`, each with its own fit line."""
    sub = _amount_pairs(df, group_col)
    if sub.empty:
        _skip(f"requested_vs_granted_by_{group_col}", "no complete rows")
        return 0
    if isinstance(sub[group_col].dtype, pd.CategoricalDtype):
        levels = list(sub[group_col].cat.categories)
    else:
        levels = sorted(sub[group_col].unique())
    groups = [g for g in levels if (sub[group_col] == g).any()]

    fig, axes = plt.subplots(1, len(groups), figsize=(5 * len(groups), 4.5), sharey=True, squeeze=False)
    cmap = plt.cm.tab10
    for i, (ax, g) in enumerate(zip(axes[0], groups)):
        part = sub[sub[group_col] == g]
        x = part["amount_requested"].to_numpy()
        y = part["amount_granted"].to_numpy()
        ax.scatter(x, y, color=cmap(i), alpha=0.7, s=14)
        line = _fit_line(x, y)
        if line is not None:
            ax.plot(*line, color=cmap(i))
        ax.set_title(str(g))
        ax.set_xlabel("Amount Requested ($)")
    axes[0][0].set_ylabel("Amount Granted ($)")
    fig.suptitle(title)
    _save(fig, output_dir, f"requested_vs_granted_by_{group_col}.png")
    return len(sub)
