"""
Scalar graph endpoints.

Evaluation problems (cycles, unit mismatches, bad formulas) are reported
per node in the response body, not as HTTP errors.
"""

from fastapi import APIRouter

from calcflow.core.logging import get_logger
from calcflow.graph.evaluator import GraphEvaluator
from calcflow.schemas.graph import GraphEvaluateRequest, GraphEvaluateResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post("/evaluate", response_model=GraphEvaluateResponse)
def evaluate_graph(request: GraphEvaluateRequest) -> GraphEvaluateResponse:
    """Evaluate every node of a calculation graph."""
    output = GraphEvaluator().run(request.nodes, request.edges)
    logger.info(
        "Graph evaluation request",
        extra={"nodes": len(request.nodes), "circular": len(output.circular_nodes)},
    )
    return GraphEvaluateResponse.from_output(output)
