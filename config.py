#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf: it never imports from
other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_GRID_SIZE: int = 5
DEFAULT_SEED: int = 42
DEFAULT_SIM_SPEED: float = 1.0
DEFAULT_CONTROLLER_MODE: str = "FIXED"

# ── Authority server defaults ────────────────────────────────────────────────
SERVER_HOST: str = "0.0.0.0"
SERVER_PORT: int = 8000

# ── Remote feed defaults ─────────────────────────────────────────────────────
DEFAULT_FEED_URL: str = "http://localhost:8000"
POLL_INTERVAL_S: float = 0.1
FEED_TIMEOUT_S: float = 0.5
FEED_PUSH: bool = True            # listen on /ws before falling back to polling
PUSH_RECONNECT_S: float = 5.0

# ── UI defaults ──────────────────────────────────────────────────────────────
DISPLAY_MODE: str = "local"  # "local" (integrated) or "remote" (interpolated)
WINDOW_WIDTH: int = 1000
WINDOW_HEIGHT: int = 760
TARGET_FPS: int = 60

# ── ML model path (relative to project root) ─────────────────────────────────
ML_MODEL_REL_PATH: str = "ml/generated/timing_model.pkl"
