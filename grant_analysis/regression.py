# Ordinary least squares models of granted amount and their diagnostics
import os
import re
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import statsmodels.formula.api as smf

from .config import MODELS, ALPHA, DPI

@dataclass(frozen=True)
class ModelSpec:
    name: str
    formula: str

    @property
    def columns(self) -> List[str]:
        """Variables named in the formula, outcome first."""
        names = re.findall(r"[A-Za-z_][A-Za-z0-9_]*", self.formula)
        return list(dict.fromkeys(names))

def model_specs(models: Dict[str, str] = MODELS) -> List[ModelSpec]:
    return [ModelSpec(name, formula) for name, formula in models.items()]

def model_frame(df: pd.DataFrame, spec: ModelSpec) -> pd.DataFrame:
    """Rows complete on the model's own columns, with unused category levels dropped."""
    frame = df[spec.columns].dropna().copy()
    for col in frame.columns:
        if isinstance(frame[col].dtype, pd.CategoricalDtype):
            frame[col] = frame[col].cat.remove_unused_categories()
    return frame

def fit_ols(df: pd.DataFrame, spec: ModelSpec):
    """
    Fit `spec.formula` by OLS on the rows complete for that model.

    Raises:
        ValueError: if there are not more complete rows than parameters
    """
    frame = model_frame(df, spec)
    if frame.empty:
        raise ValueError(f"[{spec.name}] no complete rows for {spec.formula}")
    model = smf.ols(spec.formula, data=frame)
    n_params = model.exog.shape[1]
    if len(frame) <= n_params:
        raise ValueError(
            f"[{spec.name}] {len(frame)} complete rows is too few for {n_params} parameters"
        )
    result = model.fit()
    print(f"[{spec.name}] {spec.formula}: n={int(result.nobs)}, R²={result.rsquared:.4f}")
    return result

def tidy_coefficients(result) -> pd.DataFrame:
    """Coefficient table: estimate, standard error, t, p and confidence bounds per term."""
    ci = result.conf_int(alpha=ALPHA)
    tidy = pd.DataFrame({
        "term": result.params.index,
        "estimate": result.params.values,
        "std_error": result.bse.values,
        "t_value": result.tvalues.values,
        "p_value": result.pvalues.values,
        "conf_low": ci.iloc[:, 0].values,
        "conf_high": ci.iloc[:, 1].values,
    })
    return tidy.reset_index(drop=True)

def model_fit_summary(result) -> Dict[str, float]:
    """Overall fit quality of a fitted model."""
    return {
        "n": int(result.nobs),
        "r_squared": float(result.rsquared),
        "adj_r_squared": float(result.rsquared_adj),
        "f_pvalue": float(result.f_pvalue) if result.f_pvalue is not None else np.nan,
        "sigma": float(np.sqrt(result.scale)),
    }

def interaction_effects(result, alpha: float = ALPHA) -> pd.DataFrame:
    """
    Interaction rows of the coefficient table.

    A significant row means the slope of granted on requested differs for that
    level from the reference level.
    """
    tidy = tidy_coefficients(result)
    inter = tidy[tidy["term"].str.contains(":", regex=False)].copy()
    inter["significant"] = inter["p_value"] < alpha
    return inter.reset_index(drop=True)

def residual_frame(result) -> pd.DataFrame:
    """Fitted value and residual for every row the model used."""
    return pd.DataFrame({
        "fitted": np.asarray(result.fittedvalues, dtype=float),
        "resid": np.asarray(result.resid, dtype=float),
    }, index=result.fittedvalues.index)

def plot_residuals_vs_fitted(residuals: pd.DataFrame, path: str,
                             title: str = "Model Diagnostics: Residuals vs Fitted Values"):
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.scatter(residuals["fitted"], residuals["resid"], s=12, color="black")
    ax.axhline(0, color="red", linestyle="--")
    ax.set_xlabel("Fitted Values")
    ax.set_ylabel("Residuals")
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(path, dpi=DPI)
    plt.close(fig)

def print_model_report(name: str, result):
    """Console block: coefficient table, fit statistics and any interaction verdicts."""
    print(f"\n--- Model: {name} ---")
    print(tidy_coefficients(result).round(4).to_string(index=False))
    fit = model_fit_summary(result)
    print(f"n={fit['n']}  R²={fit['r_squared']:.4f}  adj R²={fit['adj_r_squared']:.4f}  "
          f"sigma={fit['sigma']:,.2f}  F p-value={fit['f_pvalue']:.4g}")
    inter = interaction_effects(result)
    for _, row in inter.iterrows():
        verdict = "slope differs" if row["significant"] else "no evidence slope differs"
        print(f"  interaction {row['term']}: {row['estimate']:.4f} (p={row['p_value']:.4f}) -> {verdict}")

def run_regressions(df: pd.DataFrame, output_dir: str, models: Dict[str, str] = MODELS) -> Dict:
    """
    Fit every configured model, print its report, and draw residuals for the
    multi-predictor model.

    Returns:
        Dictionary of model name -> fitted result
    """
    results = {}
    for spec in model_specs(models):
        results[spec.name] = fit_ols(df, spec)
        print_model_report(spec.name, results[spec.name])

    if "multi" in results:
        resid = residual_frame(results["multi"])
        plot_residuals_vs_fitted(resid, os.path.join(output_dir, "multi_residuals_vs_fitted.png"))
    return results
