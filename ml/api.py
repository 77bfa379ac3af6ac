"""
ml/api.py
=========
FastAPI backend for the scheduling-label collaborator.

Start the server::

    python -m ml.api                       # -> http://localhost:8000/api/predict

Endpoints
---------
* ``POST /api/log-data``       append a labelled sample to the CSV store
* ``POST /api/train-model``    retrain the Random Forest from the CSV
* ``POST /api/predict``        predict a scheduling label (never fails)
* ``POST /api/log-violation``  append a violation to ``violations.log``
* ``POST /api/log-accident``   append an accident to ``accidents.log``
* ``GET  /api/traffic-data``   random demo figures for three intersections

.. note::

   This server is **not** required to run the simulation; without it the
   light controller keeps using the Round Robin label.
"""

import logging
import os
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ml.scheduler_model import FALLBACK_LABEL, SchedulingModelTrainer, SchedulingPredictor
from ml.store import SampleStore, append_json_line

log = logging.getLogger("ml.api")

_DEFAULT_DATA_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "data")
)

# ── Pydantic request schemas ─────────────────────────────────────────────────


class PredictRequest(BaseModel):
    """Traffic expected at ``timestamp``."""
    timestamp: str
    cars_present: int
    emergency_vehicle: int = 0


class LogDataRequest(PredictRequest):
    """Labelled sample for the training CSV."""
    scheduling_model: str


class ViolationReport(BaseModel):
    """Serialised :class:`sim.records.ViolationRecord`."""
    type: str
    vehicle_id: str
    timestamp: float
    direction: str
    speed: Optional[float] = None
    limit: Optional[float] = None


class Location(BaseModel):
    x: float
    y: float


class AccidentReport(BaseModel):
    """Serialised :class:`sim.records.AccidentRecord`."""
    id: str
    vehicles: List[str]
    location: Location
    timestamp: float
    directions: List[str]


# ── FastAPI application ──────────────────────────────────────────────────────


def create_app(data_dir: Optional[str] = None) -> FastAPI:
    """Build the backend app writing every file under *data_dir*."""
    folder = data_dir or _DEFAULT_DATA_DIR
    samples = SampleStore(os.path.join(folder, "samples.csv"))
    model_path = os.path.join(folder, "scheduler_model.pkl")
    predictor = SchedulingPredictor(model_path)
    violations_log = os.path.join(folder, "violations.log")
    accidents_log = os.path.join(folder, "accidents.log")

    app = FastAPI(
        title="Traffic Scheduling API",
        description="Logs traffic samples and predicts a light scheduling policy.",
        version="1.0",
    )

    @app.post("/api/log-data")
    def log_data(sample: LogDataRequest):
        """Append one sample to the training CSV."""
        data = sample.model_dump()
        try:
            samples.append(data)
        except OSError as exc:
            log.error("Error logging data: %s", exc)
            raise HTTPException(status_code=500, detail=f"Failed to log data: {exc}")
        log.info(
            "Data logged: %d cars, emergency %s, model %s",
            sample.cars_present,
            "yes" if sample.emergency_vehicle else "no",
            sample.scheduling_model,
        )
        return {"success": True, "message": "Data logged successfully", "data": data}

    @app.post("/api/train-model")
    def train_model():
        """Retrain the scheduling model from every logged sample."""
        try:
            report = SchedulingModelTrainer().train(samples.csv_path, model_path)
        except FileNotFoundError:
            raise HTTPException(status_code=400, detail="No samples logged yet")
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except OSError as exc:
            log.error("Training error: %s", exc)
            raise HTTPException(status_code=500, detail=f"Model training failed: {exc}")
        return {"success": True, "message": "Model trained successfully", "report": report}

    @app.post("/api/predict")
    def predict(request: PredictRequest):
        """Predict a scheduling label, falling back to Round Robin."""
        try:
            label = predictor.predict(
                request.timestamp, request.cars_present, request.emergency_vehicle,
            )
        except Exception as exc:
            log.warning("Prediction failed, using fallback: %s", exc)
            return {
                "scheduling_model": FALLBACK_LABEL,
                "success": False,
                "message": "Prediction failed, using fallback",
            }
        log.info(
            "Prediction: %s for %d cars, emergency %s",
            label, request.cars_present, "yes" if request.emergency_vehicle else "no",
        )
        return {
            "scheduling_model": label,
            "success": True,
            "input": request.model_dump(),
        }

    @app.post("/api/log-violation")
    def log_violation(violation: ViolationReport):
        """Append a violation record as one JSON line."""
        try:
            append_json_line(violations_log, violation.model_dump(exclude_none=True))
        except OSError as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        log.warning(
            "VIOLATION: %s - vehicle %s in %s",
            violation.type, violation.vehicle_id, violation.direction,
        )
        return {"success": True, "message": "Violation logged"}

    @app.post("/api/log-accident")
    def log_accident(accident: AccidentReport):
        """Append an accident record as one JSON line."""
        try:
            append_json_line(accidents_log, accident.model_dump())
        except OSError as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        log.error(
            "ACCIDENT: %s at (%.1f, %.1f)",
            " & ".join(accident.vehicles), accident.location.x, accident.location.y,
        )
        return {"success": True, "message": "Accident logged"}

    @app.get("/api/traffic-data")
    def traffic_data():
        """Random demo figures, regenerated on every call."""
        def _intersection(idx: int, name: str, base: int, spread: int,
                          wait: int, wait_spread: int, congested: float) -> Dict:
            return {
                "id": idx,
                "name": name,
                "vehicles": random.randint(0, spread - 1) + base,
                "avgWaitTime": random.randint(0, wait_spread - 1) + wait,
                "status": "congested" if random.random() > congested else "normal",
            }

        return {
            "intersections": [
                _intersection(1, "Main St & 1st Ave", 5, 20, 10, 30, 0.7),
                _intersection(2, "Oak Rd & 2nd Ave", 3, 15, 8, 25, 0.8),
                _intersection(3, "Pine St & 3rd Ave", 7, 18, 12, 35, 0.6),
            ],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()


# ── Standalone entry point ───────────────────────────────────────────────────

if __name__ == "__main__":
    print("Starting traffic scheduling server on http://0.0.0.0:8000 …")
    uvicorn.run(app, host="0.0.0.0", port=8000)
