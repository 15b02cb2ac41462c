"""
ml — Learned signal timing
==========================

Modules
-------
timing_model
    :func:`~ml.timing_model.predict_green_time` loads a joblib-pickled
    estimator once and asks it for a green duration given the queued
    load on each axis.  Used by the ML and HYBRID controller modes.
generated
    Default location of the model artefact (``timing_model.pkl``).
"""
