"""
Dependencies for dependency injection in routes.
"""
from mongo_rest.dependencies.gates import (
    Gate,
    GatePipeline,
    RouteContext,
    build_gate_pipeline,
    extract_token,
)
from mongo_rest.dependencies.tools import Tools

__all__ = [
    "Gate",
    "GatePipeline",
    "RouteContext",
    "Tools",
    "build_gate_pipeline",
    "extract_token",
]
