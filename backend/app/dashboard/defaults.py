"""Fixed parameters for the dashboard state, simulator and servers."""

# Initial snapshot (values as shipped with the first dashboard release)
BASE_PRICE = 9138.90
INITIAL_PRICE_CHANGE = 45.20
INITIAL_PRICE_CHANGE_PERCENT = 0.50

# Static dataset metadata shown on the dashboard
DATA_POINT_COUNT = 1261
FEATURE_COUNT = 60

# Price history: one point per day, centered on this price with uniform jitter
HISTORY_CENTER_PRICE = 9100.0
HISTORY_JITTER = 100.0  # +/- around the center
HISTORY_LENGTH = 30  # Max points kept; oldest evicted first

# Live ticks
TICK_INTERVAL = 30.0  # seconds
TICK_JITTER = 5.0  # +/- per tick

# Simulated inference
PREDICTION_LATENCY = 2.0  # seconds
CONFIDENCE_MIN = 70  # inclusive
CONFIDENCE_MAX = 100  # exclusive

# Offline evaluation metrics per model: (accuracy, precision, recall)
MODEL_METRICS: dict[str, tuple[float, float, float]] = {
    "random_forest": (0.5597, 0.5573, 0.5597),
    "hybrid": (0.5309, 0.5160, 0.5309),
    "svm": (0.5350, 0.2862, 0.5350),
}

# Servers
HOST = "0.0.0.0"
HTTP_PORT = 3000
WS_PORT = 8080
SEND_TIMEOUT = 5.0  # per-subscriber send, seconds

# Remote scoring service (only used when SCORING_SERVICE_URL is set)
SCORING_TIMEOUT = 10.0
