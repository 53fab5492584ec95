# config.py
import os

# --- Storage ---
# One subdirectory per training pack code, one file per saved session
DATA_DIR = os.getenv("GPC_DATA_DIR", os.path.join("data", "CustomTrainingStatistics"))

# --- Plugin ---
# Persisted "plugin enabled" flag (host variable store); "0" disables
PLUGIN_ENABLED = os.getenv("GPC_ENABLED", "1").strip() not in ("0", "false", "False", "")

# Rolling window of recent shot outcomes kept per snapshot
LAST_SHOTS_WINDOW = 50

# --- Logging ---
LOG_LEVEL = os.getenv("GPC_LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("GPC_LOG_FILE") or None

# --- Shot distribution heatmap ---
# Goal mouth in game units: x is horizontal (centered on 0), z is height
GOAL_HALF_WIDTH = 892.755
GOAL_HEIGHT = 642.775
HEATMAP_BINS_X = int(os.getenv("GPC_HEATMAP_BINS_X", "32"))
HEATMAP_BINS_Z = int(os.getenv("GPC_HEATMAP_BINS_Z", "24"))
