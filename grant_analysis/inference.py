# Resampling inference on a two-group difference in means
import os
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.stats import norm

from .config import SEED, N_REPS, CI_LEVEL, GROUP_ORDER, DPI

DIRECTIONS = {
    "right": "right", "greater": "right",
    "left": "left", "less": "left",
    "two-sided": "two-sided", "two_sided": "two-sided", "both": "two-sided",
}

@dataclass(frozen=True)
class PermutationResult:
    observed: float
    null_distribution: np.ndarray
    p_value: float
    direction: str
    reps: int
    seed: int

@dataclass(frozen=True)
class BootstrapResult:
    observed: float
    distribution: np.ndarray
    lower: float
    upper: float
    level: float
    ci_type: str
    reps: int
    seed: int

def diff_in_means(values: Sequence[float], groups: Sequence[str],
                  order: Tuple[str, str] = GROUP_ORDER) -> float:
    """Mean of `values` in order[0] minus mean in order[1]."""
    values = np.asarray(values, dtype=float)
    groups = np.asarray(groups, dtype=object)
    first = values[groups == order[0]]
    second = values[groups == order[1]]
    return float(first.mean() - second.mean())

def prepare_two_group_sample(df: pd.DataFrame, outcome: str, group: str,
                             order: Tuple[str, str] = GROUP_ORDER) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rows with a present outcome and a group label in `order`.

    Returns:
        Tuple of (outcome values, group labels)

    Raises:
        ValueError: if either group has no rows left
    """
    keep = df[outcome].notna() & df[group].isin(order)
    sub = df.loc[keep, [outcome, group]]
    values = sub[outcome].to_numpy(dtype=float)
    labels = sub[group].astype(object).to_numpy()
    for g in order:
        if not (labels == g).any():
            raise ValueError(f"No rows with non-missing '{outcome}' in group '{g}' of '{group}'")
    return values, labels

def _p_value(null: np.ndarray, observed: float, direction: str) -> float:
    right = float(np.mean(null >= observed))
    left = float(np.mean(null <= observed))
    if direction == "right":
        return right
    if direction == "left":
        return left
    return min(1.0, 2 * min(left, right))

def permutation_test(df: pd.DataFrame, outcome: str, group: str,
                     order: Tuple[str, str] = GROUP_ORDER, reps: int = N_REPS,
                     seed: int = SEED, direction: str = "right") -> PermutationResult:
    """
    Test independence of `outcome` and `group` by shuffling the group labels.

    Args:
        df: Analysis table
        outcome: Numeric outcome column
        group: Binary grouping column
        order: Groups in statistic order (first minus second)
        reps: Number of label shuffles
        seed: Seed for the shuffles
        direction: "right", "left" or "two-sided"

    Returns:
        PermutationResult with the observed statistic, null distribution and p-value
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown direction '{direction}'")
    direction = DIRECTIONS[direction]

    values, labels = prepare_two_group_sample(df, outcome, group, order)
    observed = diff_in_means(values, labels, order)

    rng = np.random.default_rng(seed)
    null = np.empty(reps)
    for i in range(reps):
        null[i] = diff_in_means(values, rng.permutation(labels), order)

    p = _p_value(null, observed, direction)
    print(f"[permutation] {outcome} ~ {group}: observed={observed:,.2f} "
          f"p({direction})={p:.4f} reps={reps} seed={seed}")
    return PermutationResult(observed, null, p, direction, reps, seed)

def bootstrap_diff_in_means(df: pd.DataFrame, outcome: str, group: str,
                            order: Tuple[str, str] = GROUP_ORDER, reps: int = N_REPS,
                            seed: int = SEED, level: float = CI_LEVEL,
                            ci_type: str = "percentile") -> BootstrapResult:
    """
    Bootstrap interval for the difference in means, resampling within each group.

    `ci_type="percentile"` takes the (1-level)/2 and (1+level)/2 quantiles of the
    bootstrap distribution; `ci_type="se"` uses observed +/- z * sd(bootstrap).
    """
    if ci_type not in ("percentile", "se"):
        raise ValueError(f"Unknown ci_type '{ci_type}'")

    values, labels = prepare_two_group_sample(df, outcome, group, order)
    observed = diff_in_means(values, labels, order)
    first = values[labels == order[0]]
    second = values[labels == order[1]]

    rng = np.random.default_rng(seed)
    boot = np.empty(reps)
    for i in range(reps):
        a = rng.choice(first, size=len(first), replace=True)
        b = rng.choice(second, size=len(second), replace=True)
        boot[i] = a.mean() - b.mean()

    if ci_type == "percentile":
        alpha = (1 - level) / 2
        lower, upper = np.percentile(boot, [alpha * 100, (1 - alpha) * 100])
    else:
        half = norm.ppf((1 + level) / 2) * np.std(boot, ddof=1)
        lower, upper = observed - half, observed + half

    print(f"[bootstrap] {outcome} ~ {group}: observed={observed:,.2f} "
          f"{level*100:.0f}% CI ({ci_type}) = [{lower:,.2f}, {upper:,.2f}]")
    return BootstrapResult(observed, boot, float(lower), float(upper), level, ci_type, reps, seed)

# -------------------------- Plots --------------------------
def plot_null_distribution(result: PermutationResult, path: str, title: str):
    """Null histogram with the observed statistic and the p-value region shaded."""
    fig, ax = plt.subplots(figsize=(8, 4.5))
    counts, edges, patches = ax.hist(result.null_distribution, bins=30, color="grey", edgecolor="white")
    for patch, left_edge, right_edge in zip(patches, edges[:-1], edges[1:]):
        mid = (left_edge + right_edge) / 2
        shaded = (
            (result.direction == "right" and mid >= result.observed)
            or (result.direction == "left" and mid <= result.observed)
            or (result.direction == "two-sided" and abs(mid) >= abs(result.observed))
        )
        if shaded:
            patch.set_facecolor("salmon")
    ax.axvline(result.observed, color="red", linewidth=2)
    ax.set_xlabel("Difference in means")
    ax.set_ylabel("Count")
    ax.set_title(f"{title}\np = {result.p_value:.4f}")
    fig.tight_layout()
    fig.savefig(path, dpi=DPI)
    plt.close(fig)

def plot_bootstrap_distribution(result: BootstrapResult, path: str, title: str):
    """Bootstrap histogram with the confidence interval shaded."""
    fig, ax = plt.subplots(figsize=(8, 4.5))
    ax.hist(result.distribution, bins=30, color="grey", edgecolor="white")
    ax.axvspan(result.lower, result.upper, color="mediumseagreen", alpha=0.3)
    ax.axvline(result.lower, color="mediumseagreen")
    ax.axvline(result.upper, color="mediumseagreen")
    ax.set_xlabel("Difference in means")
    ax.set_ylabel("Count")
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(path, dpi=DPI)
    plt.close(fig)

def save_inference_plots(perm: PermutationResult, boot: BootstrapResult, output_dir: str):
    plot_null_distribution(perm, os.path.join(output_dir, "permutation_null_distribution.png"),
                           "Hypothesis Test: Difference in Requested Amounts by Age")
    plot_bootstrap_distribution(boot, os.path.join(output_dir, "bootstrap_distribution.png"),
                                "Bootstrap Distribution of Age-Based Differences in Requests")
