#!/usr/bin/env python3
"""
Timing-model inference tests using a tiny estimator pickled with joblib.
"""

from __future__ import annotations

import os
import tempfile
import unittest

import joblib
import numpy as np

from ml.timing_model import build_features, clear_model_cache, predict_green_time


class LoadWeightedModel:
    """Stand-in estimator: 10 s plus 3 s per vehicle on the phase's axis."""

    def predict(self, X):
        X = np.asarray(X, dtype=float)
        own = np.where(X[:, 2] > 0.5, X[:, 0], X[:, 1])
        return 10.0 + 3.0 * own


class BrokenModel:
    """Has no ``predict``."""


class RaisingModel:
    def predict(self, X):
        raise KeyError("feature_names_in_")


class TimingModelTests(unittest.TestCase):
    def setUp(self) -> None:
        clear_model_cache()
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "timing_model.pkl")
        joblib.dump(LoadWeightedModel(), self.path)

    def tearDown(self) -> None:
        clear_model_cache()
        self._tmp.cleanup()

    def test_features_shape(self) -> None:
        X = build_features(3, 1, True)
        self.assertEqual(X.shape, (1, 3))
        self.assertEqual(X.tolist(), [[3.0, 1.0, 1.0]])

    def test_prediction(self) -> None:
        ns = predict_green_time(4, 1, True, model_path=self.path)
        ew = predict_green_time(4, 1, False, model_path=self.path)
        self.assertEqual(ns, {"status": "success", "green_s": 22.0})
        self.assertEqual(ew["green_s"], 13.0)

    def test_missing_model(self) -> None:
        missing = os.path.join(self._tmp.name, "nope.pkl")
        self.assertEqual(predict_green_time(1, 1, True, model_path=missing),
                         {"error": "Model not found"})

    def test_model_without_predict(self) -> None:
        path = os.path.join(self._tmp.name, "broken.pkl")
        joblib.dump(BrokenModel(), path)
        result = predict_green_time(1, 1, True, model_path=path)
        self.assertIn("error", result)

    def test_corrupt_model_file(self) -> None:
        path = os.path.join(self._tmp.name, "corrupt.pkl")
        with open(path, "wb") as fh:
            fh.write(b"\x80\x04not really a pickle")
        result = predict_green_time(1, 1, True, model_path=path)
        self.assertIn("error", result)
        self.assertNotIn("status", result)

    def test_model_raising_on_predict(self) -> None:
        path = os.path.join(self._tmp.name, "raising.pkl")
        joblib.dump(RaisingModel(), path)
        result = predict_green_time(1, 1, True, model_path=path)
        self.assertTrue(result["error"].startswith("Prediction failed"))


if __name__ == "__main__":
    unittest.main()
