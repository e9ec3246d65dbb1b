"""
Project-wide paths and default settings.
"""

import os
from pathlib import Path

PROJECT_DIR = Path(__file__).resolve().parent.parent.parent
CFG_DIR = os.getenv("JSONCOMPOSER_CFG_DIR", str(PROJECT_DIR / "cfg"))

DEFAULT_CONFIG_NAME = "compose"

# Composition scoring
DEFAULT_SIMILARITY_THRESHOLD = 0.5
DEFAULT_NAME_WEIGHT = 0.4
DEFAULT_ATTRIBUTE_WEIGHT = 0.6
NAME_SIMILARITY_BASIS_THRESHOLD = 0.85

# Discovery
DEFAULT_ENABLE_PARALLEL = True
DEFAULT_MAX_WORKERS = 4

# HTTP adapter
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

DEFAULT_LOG_LEVEL = os.getenv("JSONCOMPOSER_LOG_LEVEL", "INFO")
