# Pairwise-complete Pearson correlation of the numeric application fields
import os
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy.stats import pearsonr

from .config import CORRELATION_COLS, DPI

def pairwise_correlation(df: pd.DataFrame,
                         columns: Optional[List[str]] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Pearson correlation matrix where each cell uses only the rows on which
    both of its variables are present.

    A row missing one variable still contributes to every pair that does not
    involve that variable.

    Args:
        df: Analysis table
        columns: Numeric columns to correlate

    Returns:
        Tuple of (correlation matrix, matrix of complete-pair counts)
    """
    columns = columns or CORRELATION_COLS
    corr = pd.DataFrame(np.nan, index=columns, columns=columns, dtype=float)
    n_obs = pd.DataFrame(0, index=columns, columns=columns, dtype=int)

    for i, var1 in enumerate(columns):
        for var2 in columns[i:]:
            both = df[var1].notna() & df[var2].notna()
            n = int(both.sum())
            n_obs.loc[var1, var2] = n_obs.loc[var2, var1] = n
            if var1 == var2:
                corr.loc[var1, var2] = 1.0
                continue
            x = df.loc[both, var1].to_numpy(dtype=float)
            y = df.loc[both, var2].to_numpy(dtype=float)
            if n < 2 or np.ptp(x) == 0 or np.ptp(y) == 0:
                continue
            r, _ = pearsonr(x, y)
            corr.loc[var1, var2] = corr.loc[var2, var1] = float(r)

    return corr, n_obs

def plot_correlation_heatmap(corr: pd.DataFrame, output_dir: str) -> str:
    path = os.path.join(output_dir, "correlation_matrix.png")
    plt.figure(figsize=(7, 6))
    sns.heatmap(corr, annot=True, fmt=".3f", cmap="RdBu_r", center=0, vmin=-1, vmax=1,
                square=True, cbar_kws={"label": "Pearson r (pairwise complete)"})
    plt.title("Correlation Between Key Numeric Variables")
    plt.tight_layout()
    plt.savefig(path, dpi=DPI, bbox_inches="tight")
    plt.close()
    return path

def run_correlation(df: pd.DataFrame, output_dir: str) -> pd.DataFrame:
    corr, n_obs = pairwise_correlation(df)
    print("[correlation] Pearson r (pairwise complete):")
    print(corr.round(3).to_string())
    print("[correlation] Complete pairs per cell:")
    print(n_obs.to_string())
    plot_correlation_heatmap(corr, output_dir)
    return corr
