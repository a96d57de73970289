"""
settings.py — configuration for the Event Return Explorer
---------------------------------------------------------
Chart geometry, palette and labels live here as plain constants.
Two things can be overridden from the environment (or a local .env):

    EVENT_DATA_PATH   path to the preprocessed JSON dataset
    LOG_LEVEL         logging level name (default INFO)
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Folder where this file lives (robust to "current working directory" issues)
APP_DIR = Path(__file__).resolve().parent

OUT_DIR = APP_DIR / "outputs"

# Local env vars for dev (DO NOT commit .env)
load_dotenv(APP_DIR / ".env", override=False)

DATA_PATH = Path(os.getenv("EVENT_DATA_PATH", str(OUT_DIR / "event_study_data.json")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  Drawing surface                                                         ║
# ╚══════════════════════════════════════════════════════════════════════════╝
MARGIN = dict(t=40, r=80, b=60, l=80)
FIG_WIDTH = 1200
FIG_HEIGHT = 600
PLOT_WIDTH = FIG_WIDTH - MARGIN["l"] - MARGIN["r"]     # 1040
PLOT_HEIGHT = FIG_HEIGHT - MARGIN["t"] - MARGIN["b"]   # 500

TICK_COUNT = 10

# ── Rank groups & colors ────────────────────────────────────────────────────
# Color is positional in RANK_ORDER, never in the subset an event happens to have.
RANK_ORDER = ("Top 1-10", "11-20", "21-30", "31-40", "41-50", "51+")
PALETTE = ("#d73027", "#f46d43", "#fdae61", "#74add1", "#4575b4", "#313695")
UNKNOWN_COLOR = "#7f7f7f"

LINE_OPACITY = 0.8
MARKER_OPACITY = 0.6
MARKER_RADIUS = 3

# Vertical domain is [-(1+pad)·max|r|, +(1+pad)·max|r|]
Y_PADDING = 0.1
# Half-span used when every return is exactly zero
FLAT_Y_HALF_SPAN = 1.0

# ── Selector & text ─────────────────────────────────────────────────────────
ALL_EVENTS = "all"
ALL_EVENTS_LABEL = "All events"

X_AXIS_TITLE = "Days from Event Start"
Y_AXIS_TITLE = "Cumulative Return (%)"
EVENT_LINE_LABEL = "Event Start"
NO_DATA_TEXT = "No data available for selected event"
LOAD_ERROR_TEXT = "Error loading data. Please run the preprocessing step first."


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Apply LOG_LEVEL once at app start."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
