"""
server — HTTP authority for the grid
====================================

:func:`create_app` wraps a :class:`~gridsim.sim_bridge.SimBridge` in a
FastAPI application; :func:`run_server` serves it with uvicorn.
"""

from .api import create_app, run_server

__all__ = ["create_app", "run_server"]
