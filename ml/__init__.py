"""
ml — Scheduling-label backend
=============================

Modules
-------
api
    FastAPI app (:func:`~ml.api.create_app`) exposing ``/api/predict``,
    ``/api/log-data``, ``/api/train-model`` and the safety log endpoints.
scheduler_model
    Random Forest trainer and cached predictor for the scheduling label.
store
    CSV sample store and JSON-lines safety logs.
data
    Artefacts produced at runtime (``samples.csv``, ``.pkl`` model,
    ``violations.log``, ``accidents.log``) live in ``data/`` at the
    repository root.
"""
