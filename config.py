"""
Configuration loader - scan parameters, overridable from config_local.py or environment variables.

Usage:
    from gearscan.scan_config import load_scan_config
    scan_config = load_scan_config()   # validated ScanConfig built from this module

Setup:
    1. Copy config_local.py.example to config_local.py
    2. Override any default parameters (window title, regions, thresholds)
    3. config_local.py is gitignored so your layout stays local
"""
import os

# =============================================================================
# DEFAULT PARAMETERS (can be overridden in config_local.py)
# =============================================================================

# Capture
WINDOW_TITLE = "Epic Seven"        # Exact title of the game window
SOURCE_POLL_INTERVAL = 0.5         # Seconds between "is the window there yet" checks

# Scan loop
SCAN_INTERVAL = 1.0                # Seconds between scan cycles

# Screen regions at the reference resolution (2560x1369), top-left origin.
# Format: (x, y, width, height)
REFERENCE_RESOLUTION = (2560, 1369)
MAIN_STAT_REGION = (0, 399, 780, 80)      # Main stat line under the item name
SUB_STATS_REGION = (0, 509, 780, 220)     # Four sub-stat lines

# Mask thresholds, normalized [0, 1]
BLACK_THRESHOLD = 0.54             # Colour channels below this count as "black"
ALPHA_THRESHOLD = 0.88             # Alpha at or above this counts as tooltip text

# =============================================================================
# OCR (Tesseract)
# =============================================================================

OCR_LANGUAGE = "eng"
TESSERACT_CMD = None               # Path to tesseract.exe if it is not on PATH
TESSERACT_CONFIG = "--psm 6 --oem 3"

# =============================================================================
# DEBUG / DASHBOARD
# =============================================================================

SAVE_DEBUG_IMAGES = False          # Dump region images of every scan to debug/
DASHBOARD_ENABLED = True
DASHBOARD_PORT = None              # None = pick a free port

# =============================================================================
# LOAD LOCAL OVERRIDES
# =============================================================================

# Try to load from config_local.py first (for local development)
try:
    from config_local import *
    print("Loaded config from config_local.py")
except ImportError:
    # Fall back to environment variables for machine-specific paths
    TESSERACT_CMD = os.environ.get('TESSERACT_CMD', TESSERACT_CMD)
