"""Scalar calculation graph: node models, dependency ordering and evaluation."""

from calcflow.graph.dependencies import NodeDependencyGraph
from calcflow.graph.evaluator import GraphEvaluator
from calcflow.graph.models import (
    CalculationOutput,
    CalculationResult,
    Edge,
    FactorMode,
    FactorNode,
    GraphNode,
    GroupNode,
    Handle,
    PassthroughNode,
    ProcessNode,
    SourceNode,
)

__all__ = [
    "NodeDependencyGraph",
    "GraphEvaluator",
    "CalculationOutput",
    "CalculationResult",
    "Edge",
    "FactorMode",
    "FactorNode",
    "GraphNode",
    "GroupNode",
    "Handle",
    "PassthroughNode",
    "ProcessNode",
    "SourceNode",
]
