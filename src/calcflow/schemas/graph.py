"""Graph evaluation schemas for request/response validation."""

from pydantic import BaseModel, Field

from calcflow.graph.models import CalculationOutput, CalculationResult, Edge, GraphNode


class GraphEvaluateRequest(BaseModel):
    """Schema for evaluating a scalar calculation graph."""

    nodes: list[GraphNode] = Field(..., description="Graph nodes in display order")
    edges: list[Edge] = Field(default_factory=list, description="Graph edges")


class GraphEvaluateResponse(BaseModel):
    """Schema for graph evaluation results."""

    results: dict[str, CalculationResult] = Field(..., description="Result per node ID")
    circular_nodes: list[str] = Field(
        default_factory=list, description="IDs of nodes on or behind a cycle, sorted"
    )

    @classmethod
    def from_output(cls, output: CalculationOutput) -> "GraphEvaluateResponse":
        return cls(results=output.results, circular_nodes=sorted(output.circular_nodes))
