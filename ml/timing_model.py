"""
ml/timing_model.py
==================
Green-duration inference for the ML and HYBRID controller modes.

:func:`predict_green_time` takes the per-axis approach loads of one
intersection plus the phase about to start, runs the pre-trained model
loaded with :mod:`joblib`, and returns a result dict.  The model is an
opaque estimator exposing ``predict(X)``; how it was trained is outside
this package.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import joblib
import numpy as np

log = logging.getLogger("timing_model")

# ── model cache (one entry per path, loaded once per process) ─────────────────
_MODEL_CACHE: Dict[str, Any] = {}


def get_model(model_path: str):
    """Load (and cache) the estimator stored at *model_path*."""
    model = _MODEL_CACHE.get(model_path)
    if model is None:
        model = joblib.load(model_path)
        _MODEL_CACHE[model_path] = model
        log.info("Loaded timing model from %s", model_path)
    return model


def clear_model_cache() -> None:
    _MODEL_CACHE.clear()


def build_features(ns_load: float, ew_load: float, phase_is_ns: bool) -> np.ndarray:
    """Single-row feature matrix ``[[ns_load, ew_load, phase]]``."""
    return np.array(
        [float(ns_load), float(ew_load), 1.0 if phase_is_ns else 0.0],
        dtype=float,
    ).reshape(1, -1)


def predict_green_time(
    ns_load: float,
    ew_load: float,
    phase_is_ns: bool,
    model_path: str = "ml/generated/timing_model.pkl",
) -> dict:
    """Predict the green duration for the phase about to start.

    Parameters
    ----------
    ns_load, ew_load : float
        Approach loads on the north–south and east–west axes.
    phase_is_ns : bool
        True when the north–south axis is about to turn green.
    model_path : str
        Filesystem path to the joblib model file.

    Returns
    -------
    dict
        ``{status, green_s}`` on success, or ``{error: …}`` on failure.
    """
    try:
        model = get_model(model_path)
    except FileNotFoundError:
        return {"error": "Model not found"}
    except Exception as exc:
        # corrupt pickle, truncated file, estimator from an incompatible library version
        return {"error": f"Model could not be loaded: {exc!r}"}

    features = build_features(ns_load, ew_load, phase_is_ns)
    try:
        prediction = np.asarray(model.predict(features), dtype=float).ravel()
    except Exception as exc:
        return {"error": f"Prediction failed: {exc!r}"}

    if prediction.size == 0 or not np.isfinite(prediction[0]):
        return {"error": "Prediction failed: empty or non-finite output"}

    return {"status": "success", "green_s": float(prediction[0])}
