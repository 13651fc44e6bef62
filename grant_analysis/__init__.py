# Grant application impact analysis

"""
Statistical analysis of healthcare foundation grant applications:

- data_cleaning.py: Workbook loading, record schema, and derived brackets
- descriptive.py: State, month and category summaries with charts
- inference.py: Permutation test and bootstrap interval for a difference in means
- regression.py: OLS models, interaction effects and residual diagnostics
- correlation.py: Pairwise-complete correlation matrix
- clustering.py: K-means on household size and granted amount
- main.py: Orchestration script that ties everything together
"""

__version__ = "1.0.0"
