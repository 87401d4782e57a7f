"""Shared default values for user-facing configuration settings."""

# Layout
DEFAULT_THUMBNAIL_WIDTH = 288
DEFAULT_RATIO = 9 / 16
DEFAULT_SEED: int | None = None

# Output
DEFAULT_OUTPUT_DIR = "out"
DEFAULT_OUTPUT_TYPE = "tif"
DEFAULT_SAVE_FILE = True

# Fetch
DEFAULT_FETCH_TIMEOUT = 5.0

# Logging
DEFAULT_LOG_LEVEL = "INFO"
