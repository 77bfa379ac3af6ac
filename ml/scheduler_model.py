"""
ml/scheduler_model.py
=====================
Random Forest that learns which scheduling label fits a traffic sample.

Training rows come from the CSV written by :class:`ml.store.SampleStore`
(``timestamp, cars_present, emergency_vehicle, scheduling_model``).  The
model sees the hour, minute and weekday of the timestamp plus the two
traffic columns and predicts one of the three scheduling labels.

Usage::

    python -m ml.scheduler_model data/samples.csv data/scheduler_model.pkl
"""

import logging
import os
import sys
import threading
from typing import Any, Dict, Optional, Sequence

import joblib
import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.model_selection import train_test_split

log = logging.getLogger("ml.model")

FALLBACK_LABEL = "Round Robin"
FEATURE_COLUMNS: Sequence[str] = (
    "hour", "minute", "weekday", "cars_present", "emergency_vehicle",
)
LABEL_COLUMN = "scheduling_model"
MIN_TRAINING_ROWS = 5


def build_features(df: pd.DataFrame) -> pd.DataFrame:
    """Derive the model's feature columns from raw sample rows.

    Parameters
    ----------
    df : pandas.DataFrame
        Must contain ``timestamp``, ``cars_present`` and
        ``emergency_vehicle``.  Unparseable timestamps become zeros.

    Returns
    -------
    pandas.DataFrame
        One column per entry of :data:`FEATURE_COLUMNS`.
    """
    stamps = pd.to_datetime(df["timestamp"], errors="coerce", utc=True)
    features = pd.DataFrame(
        {
            "hour": stamps.dt.hour,
            "minute": stamps.dt.minute,
            "weekday": stamps.dt.dayofweek,
            "cars_present": pd.to_numeric(df["cars_present"], errors="coerce"),
            "emergency_vehicle": pd.to_numeric(df["emergency_vehicle"], errors="coerce"),
        }
    )
    return features.fillna(0).astype(float)


class SchedulingModelTrainer:
    """Trains a Random Forest to predict the scheduling label."""

    def __init__(self) -> None:
        self.model = RandomForestClassifier(
            n_estimators=25,
            max_depth=8,
            random_state=42,
            n_jobs=-1,
            class_weight="balanced",
        )

    def train(self, train_csv_path: str, model_save_path: str) -> Dict[str, Any]:
        """Load CSV, train, evaluate and serialise the model.

        Parameters
        ----------
        train_csv_path : str
            Path to the samples CSV.
        model_save_path : str
            Where to write the ``.pkl`` model file.

        Returns
        -------
        dict
            ``{samples, classes, train_accuracy, test_accuracy}``.

        Raises
        ------
        FileNotFoundError
            When the CSV does not exist.
        ValueError
            When fewer than :data:`MIN_TRAINING_ROWS` labelled rows exist.
        """
        df = pd.read_csv(train_csv_path)
        df = df.dropna(subset=[LABEL_COLUMN])
        if len(df) < MIN_TRAINING_ROWS:
            raise ValueError(
                f"need at least {MIN_TRAINING_ROWS} samples, have {len(df)}"
            )

        X = build_features(df).values
        y = df[LABEL_COLUMN].astype(str).values
        log.info("Training on %d samples, %d features", X.shape[0], X.shape[1])

        if len(df) >= 10 and len(set(y)) > 1:
            X_train, X_test, y_train, y_test = train_test_split(
                X, y, test_size=0.2, random_state=42,
            )
        else:
            X_train, X_test, y_train, y_test = X, X, y, y

        self.model.fit(X_train, y_train)
        report = {
            "samples": int(len(df)),
            "classes": sorted(str(c) for c in self.model.classes_),
            "train_accuracy": float(self.model.score(X_train, y_train)),
            "test_accuracy": float(self.model.score(X_test, y_test)),
        }

        folder = os.path.dirname(os.path.abspath(model_save_path))
        os.makedirs(folder, exist_ok=True)
        joblib.dump(self.model, model_save_path)
        log.info(
            "Model saved to %s (train %.2f, test %.2f)",
            os.path.basename(model_save_path),
            report["train_accuracy"], report["test_accuracy"],
        )
        return report


class SchedulingPredictor:
    """Loads (and caches) the trained model, reloading when the file changes.

    Parameters
    ----------
    model_path : str
        Filesystem path to the ``.pkl`` model file.
    """

    def __init__(self, model_path: str) -> None:
        self.model_path = model_path
        self._model = None
        self._mtime: Optional[float] = None
        self._lock = threading.Lock()

    def get_model(self):
        """Return the cached model, reloading it after retraining."""
        mtime = os.path.getmtime(self.model_path)
        with self._lock:
            if self._model is None or mtime != self._mtime:
                self._model = joblib.load(self.model_path)
                self._mtime = mtime
            return self._model

    def predict(self, timestamp: str, cars_present: int, emergency_vehicle: int) -> str:
        """Predict the scheduling label for one sample.

        Raises
        ------
        FileNotFoundError
            When no model has been trained yet.
        """
        model = self.get_model()
        row = pd.DataFrame(
            [{
                "timestamp": timestamp,
                "cars_present": cars_present,
                "emergency_vehicle": emergency_vehicle,
            }]
        )
        features = np.asarray(build_features(row).values).reshape(1, -1)
        return str(model.predict(features)[0])

    def predict_label(self, payload: Dict[str, Any]) -> str:
        """Payload-shaped entry point for in-process label sources."""
        return self.predict(
            str(payload.get("timestamp", "")),
            int(payload.get("cars_present", 0)),
            int(payload.get("emergency_vehicle", 0)),
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    _csv_path, _model_path = sys.argv[1], sys.argv[2]
    print(SchedulingModelTrainer().train(_csv_path, _model_path))
