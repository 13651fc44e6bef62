# Household-size / granted-amount clustering
import os
from typing import List, Optional

import pandas as pd
import matplotlib.pyplot as plt
from sklearn.cluster import KMeans

from .config import SEED, N_CLUSTERS, N_INIT, CLUSTER_FEATURES, DPI

def prepare_cluster_data(df: pd.DataFrame, features: Optional[List[str]] = None) -> pd.DataFrame:
    """Local copy of the clustering features, restricted to rows where all are present."""
    features = features or CLUSTER_FEATURES
    data = df.loc[df[features].notna().all(axis=1), features].copy()
    print(f"[kmeans] {len(data):,} of {len(df):,} rows have {features}")
    return data

def cluster_households(df: pd.DataFrame, k: int = N_CLUSTERS, seed: int = SEED,
                       features: Optional[List[str]] = None) -> pd.DataFrame:
    """
    K-means on the raw (unscaled) features with pinned k-means++ initialisation.

    Returns a new frame of the retained rows with a categorical `cluster`
    column labelled "1".."k". The same seed on the same input gives the same
    partition; other k-means implementations will not reproduce it exactly.

    Raises:
        ValueError: if fewer than k rows are complete
    """
    data = prepare_cluster_data(df, features)
    if len(data) < k:
        raise ValueError(f"K-means needs at least {k} complete rows, got {len(data)}")

    km = KMeans(n_clusters=k, init="k-means++", n_init=N_INIT, random_state=seed)
    labels = km.fit_predict(data.to_numpy(dtype=float))

    levels = [str(i) for i in range(1, k + 1)]
    data["cluster"] = pd.Categorical([str(lab + 1) for lab in labels], categories=levels)
    print(f"[kmeans] k={k} seed={seed} inertia={km.inertia_:,.2f}")
    return data

def cluster_profiles(clustered: pd.DataFrame) -> pd.DataFrame:
    """Size and feature means (the centroids) of each cluster."""
    features = [c for c in clustered.columns if c != "cluster"]
    profiles = clustered.groupby("cluster", observed=False)[features].mean().add_suffix("_mean")
    profiles.insert(0, "n", clustered.groupby("cluster", observed=False).size())
    return profiles

def plot_clusters(clustered: pd.DataFrame, output_dir: str) -> str:
    x_col, y_col = [c for c in clustered.columns if c != "cluster"][:2]
    path = os.path.join(output_dir, "kmeans_clusters.png")

    fig, ax = plt.subplots(figsize=(8, 5))
    cmap = plt.cm.tab10
    for i, level in enumerate(clustered["cluster"].cat.categories):
        part = clustered[clustered["cluster"] == level]
        ax.scatter(part[x_col], part[y_col], s=20, color=cmap(i), label=f"Cluster {level}")
    ax.set_xlabel("Household Size")
    ax.set_ylabel("Amount Granted ($)")
    ax.set_title("Grant Pattern Clusters by Household Size")
    ax.legend(title="Cluster")
    fig.tight_layout()
    fig.savefig(path, dpi=DPI)
    plt.close(fig)
    return path

def run_clustering(df: pd.DataFrame, output_dir: str, seed: int = SEED) -> pd.DataFrame:
    clustered = cluster_households(df, seed=seed)
    profiles = cluster_profiles(clustered)
    print("[kmeans] Cluster profiles:")
    print(profiles.round(2).to_string())
    plot_clusters(clustered, output_dir)
    return clustered
