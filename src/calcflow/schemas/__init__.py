"""Request and response schemas for the HTTP API."""

from calcflow.schemas.batch import (
    BatchFilterRequest,
    BatchFormulaRequest,
    BatchJoinRequest,
    BatchPipelineRequest,
    BatchPipelineResponse,
    BatchTransformRequest,
)
from calcflow.schemas.graph import GraphEvaluateRequest, GraphEvaluateResponse

__all__ = [
    "BatchFilterRequest",
    "BatchFormulaRequest",
    "BatchJoinRequest",
    "BatchPipelineRequest",
    "BatchPipelineResponse",
    "BatchTransformRequest",
    "GraphEvaluateRequest",
    "GraphEvaluateResponse",
]
