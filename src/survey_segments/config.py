"""Configuration constants for the survey segmentation analysis."""

RANDOM_SEED = 42
K_RANGE = range(1, 6)  # elbow curve, inclusive of 5
DEFAULT_K = 2  # final clustering; elbow/silhouette are advisory only
MAX_ITER = 300
TOL = 1e-4  # total centroid movement below which k-means stops
INIT_METHOD = "k-means++"
MAX_WORKERS = 1  # threads for the elbow loop (1 = sequential)
SILHOUETTE_GOOD = 0.50

# Raw survey columns (header whitespace is stripped on load)
DURATION_COLUMN = "Durasi"
STRESS_COLUMN = "JumlahStress"
ANXIETY_COLUMN = "JumlahCemas"
REQUIRED_COLUMNS = [DURATION_COLUMN, STRESS_COLUMN, ANXIETY_COLUMN]

# Raw duration answer -> (numeric encoding, short category label)
DURATION_MAPPING = {
    "Kurang dari 2 jam": 1.0,
    "2-4 jam": 3.0,
    "Lebih dari 4 jam": 5.0,
}
DURATION_LABELS = {
    "Kurang dari 2 jam": "<2 jam",
    "2-4 jam": "2-4 jam",
    "Lebih dari 4 jam": ">4 jam",
}
DURATION_CATEGORIES = ["<2 jam", "2-4 jam", ">4 jam"]  # canonical ANOVA order

# Column names used inside the analysis
FEATURE_COLUMNS = ["duration_numeric", "stress", "anxiety"]
METRIC_COLUMNS = ["stress", "anxiety"]
CATEGORY_COLUMN = "duration_category"
CLUSTER_COLUMN = "cluster"
