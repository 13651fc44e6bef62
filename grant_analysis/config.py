# Configuration constants for the grant impact analysis

# ======================= CONFIG =======================
XLSX_PATH = "Claires_Data_updated(2).xlsx"
SHEET = 1                 # second sheet of the workbook
OUTPUT_DIR = "outputs"    # figures + summary report
SEED = 123

# Resampling
N_REPS = 5000             # permutation + bootstrap repetitions
CI_LEVEL = 0.95
GROUP_ORDER = ("Adult", "Adolescent")   # diff in means = Adult - Adolescent

# Clustering
N_CLUSTERS = 3
N_INIT = 10
CLUSTER_FEATURES = ["household_size", "amount_granted"]

DPI = 150

# Derived brackets
ADULT_MAX_BIRTH_YEAR = 2003
INCOME_LOW_MAX = "$0 - $25,000"         # compared as strings, not parsed
INCOME_MEDIUM_MAX = "$26,000 - $51,000"
HOUSEHOLD_SMALL_MAX = 2
HOUSEHOLD_LARGE_MIN = 5

AGE_LEVELS = ["Adolescent", "Adult"]
INCOME_LEVELS = ["Low", "Medium", "High"]
HOUSEHOLD_LEVELS = ["Small", "Medium", "Large"]

# Reporters
TOP_CATEGORIES = ["Rent", "Mortgage", "Electric", "Auto", "Phone"]
TOP_N_STATES = 5
OUTLIER_REQUESTS = [16309.64, 28060.00]   # hidden from scatter plots only

CORRELATION_COLS = ["birth_year", "household_size", "amount_requested", "amount_granted"]

# Regression models: name -> formula
MODELS = {
    "requested": "amount_granted ~ amount_requested",
    "requested_x_age": "amount_granted ~ amount_requested * age_bracket",
    "requested_x_income": "amount_granted ~ amount_requested * income_bracket",
    "multi": "amount_granted ~ amount_requested + household_size + state",
}
ALPHA = 0.05
