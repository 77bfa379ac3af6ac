#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via ``TRAFFIC_*`` environment variables and
command-line flags (see :mod:`main`).  This module is a thin,
import-safe leaf; it never imports from other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_TICK_RATE_HZ: float = 60.0
DEFAULT_SEED = None
DEFAULT_DURATION_S: float = 0.0          # 0 → run until interrupted

# ── Backend / collaborators ──────────────────────────────────────────────────
BACKEND_URL: str = "http://127.0.0.1:8000"
BACKEND_HOST: str = "0.0.0.0"
BACKEND_PORT: int = 8000
HTTP_TIMEOUT_S: float = 2.0
PREDICTION_INTERVAL_S: float = 10.0
DATA_LOG_INTERVAL_S: float = 5.0
TRAIN_INTERVAL_S: float = 5.0
FORWARD_POLL_INTERVAL_S: float = 0.5
BUS_MAX_QUEUE: int = 1000

# ── UI defaults ──────────────────────────────────────────────────────────────
TARGET_FPS: int = 60
LOG_PANE_CAPACITY: int = 20

# ── Files (relative to project root) ─────────────────────────────────────────
DATA_DIR_REL_PATH: str = "data"
MODEL_FILE_NAME: str = "scheduler_model.pkl"
LOG_FILE: str = "traffic.log"
SAFETY_LOG_FILE: str = "safety_events.log"
