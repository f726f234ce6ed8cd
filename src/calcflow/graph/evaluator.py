"""Scalar graph evaluation.

Runs every node of a calculation graph in dependency order, carrying unit
tagged values along edges.
"""

import re
from collections.abc import Sequence

from calcflow.core.config import settings
from calcflow.core.exceptions import CalcFlowException
from calcflow.core.logging import LoggerMixin
from calcflow.formula.evaluator import evaluate_value
from calcflow.formula.functions import to_text
from calcflow.formula.units import evaluate_with_units
from calcflow.graph.dependencies import NodeDependencyGraph
from calcflow.graph.models import (
    CalculationOutput,
    CalculationResult,
    Edge,
    FactorNode,
    GraphNode,
    GroupNode,
    PassthroughNode,
    ProcessNode,
    SourceNode,
)
from calcflow.units.algebra import UNITLESS, format_unit
from calcflow.units.quantity import UnitValue, format_number, format_quantity, parse_quantity

CIRCULAR_DEPENDENCY_MESSAGE = "Circular dependency detected"
NO_FORMULA_MESSAGE = "No formula defined"
ADD_SUB_MISMATCH_MESSAGE = "Unit mismatch: Cannot add/subtract different units"

_ADD_SUB = re.compile(r"[+\-]")
_MUL_DIV_POW = re.compile(r"[*/^]")


class GraphEvaluator(LoggerMixin):
    """
    Evaluates a scalar calculation graph.

    Each call to ``run`` works on its own state and returns a fresh
    ``CalculationOutput``; the evaluator itself holds only configuration.
    """

    def __init__(
        self,
        strict_variables: bool | None = None,
        display_precision: int | None = None,
    ):
        """
        Initialize evaluator.

        Args:
            strict_variables: Unbound formula inputs fail unit-aware
                evaluation instead of resolving to unitless zero
            display_precision: Fractional digits for value-only fallback results
        """
        self.strict_variables = (
            settings.strict_variables if strict_variables is None else strict_variables
        )
        self.display_precision = (
            settings.display_precision if display_precision is None else display_precision
        )

    def run(self, nodes: Sequence[GraphNode], edges: Sequence[Edge]) -> CalculationOutput:
        """
        Evaluate every node in topological order.

        Args:
            nodes: Graph nodes in display order
            edges: Graph edges

        Returns:
            Results per node id and the set of circular node ids
        """
        by_id = {node.id: node for node in nodes}
        graph = NodeDependencyGraph.from_edges(by_id, edges)
        order, circular = graph.topological_sort()

        results: dict[str, CalculationResult] = {}
        values: dict[str, UnitValue] = {}

        for node_id in circular:
            results[node_id] = CalculationResult(
                node_id=node_id, value=None, error=CIRCULAR_DEPENDENCY_MESSAGE
            )
        if circular:
            self.logger.warning(
                "Circular dependency in graph",
                extra={"circular_nodes": sorted(circular)},
            )

        inbound: dict[str, list[Edge]] = {node_id: [] for node_id in by_id}
        for edge in edges:
            if edge.target in inbound:
                inbound[edge.target].append(edge)

        for node_id in order:
            node = by_id[node_id]

            if isinstance(node, (SourceNode, FactorNode)):
                output = self._output_value(node, values)
                values[node_id] = output
                results[node_id] = self._success(node_id, output)

            elif isinstance(node, ProcessNode):
                result, output = self._evaluate_process(node, inbound[node_id], by_id, values)
                if output is not None:
                    values[node_id] = output
                results[node_id] = result

            elif isinstance(node, PassthroughNode):
                output = None
                if inbound[node_id]:
                    upstream = by_id.get(inbound[node_id][0].source)
                    if upstream is not None:
                        output = self._output_value(upstream, values)
                if output is None:
                    results[node_id] = CalculationResult(node_id=node_id, value=None)
                else:
                    values[node_id] = output
                    results[node_id] = self._success(node_id, output)

            elif isinstance(node, GroupNode):
                continue

        self.logger.debug(
            "Graph evaluated",
            extra={"node_count": len(by_id), "sorted_count": len(order)},
        )
        return CalculationOutput(results=results, circular_nodes=circular)

    @staticmethod
    def _success(node_id: str, output: UnitValue) -> CalculationResult:
        return CalculationResult(
            node_id=node_id,
            value=format_quantity(output),
            result_unit=format_unit(output.unit),
        )

    @staticmethod
    def _output_value(node: GraphNode, values: dict[str, UnitValue]) -> UnitValue | None:
        """Value a node presents on its outputs, if it has one yet."""
        if isinstance(node, (SourceNode, FactorNode)):
            return parse_quantity(node.value, node.unit)
        if isinstance(node, (ProcessNode, PassthroughNode)):
            return values.get(node.id)
        return None

    def _evaluate_process(
        self,
        node: ProcessNode,
        inbound: list[Edge],
        by_id: dict[str, GraphNode],
        values: dict[str, UnitValue],
    ) -> tuple[CalculationResult, UnitValue | None]:
        formula = node.formula.strip()
        if not formula:
            return CalculationResult(node_id=node.id, value=None, error=NO_FORMULA_MESSAGE), None

        scope: dict[str, UnitValue] = {}
        for handle in node.inputs:
            edge = next((e for e in inbound if e.target_handle == handle.id), None)
            if edge is None or edge.source not in by_id:
                continue
            value = self._output_value(by_id[edge.source], values)
            if value is not None:
                scope[handle.label] = value

        try:
            result = evaluate_with_units(formula, scope, strict=self.strict_variables)
            if result is not None:
                return self._success(node.id, result), result

            if scope and _ADD_SUB.search(formula) and not _MUL_DIV_POW.search(formula):
                self.logger.info(
                    "Unit mismatch in process formula",
                    extra={"node_id": node.id, "formula": formula},
                )
                return (
                    CalculationResult(node_id=node.id, value=None, error=ADD_SUB_MISMATCH_MESSAGE),
                    None,
                )

            # Value-only fallback: units are dropped
            plain = evaluate_value(formula, {label: v.number for label, v in scope.items()})
        except CalcFlowException as e:
            return self._calculation_error(node, e.message), None
        except (ArithmeticError, ValueError, TypeError) as e:
            return self._calculation_error(node, str(e)), None

        if isinstance(plain, (int, float)) and not isinstance(plain, bool):
            number = float(plain)
            return (
                CalculationResult(
                    node_id=node.id,
                    value=format_number(number, self.display_precision),
                    result_unit=format_unit(UNITLESS),
                ),
                UnitValue(number),
            )
        return CalculationResult(node_id=node.id, value=to_text(plain)), None

    def _calculation_error(self, node: ProcessNode, message: str) -> CalculationResult:
        self.logger.info(
            "Process formula failed",
            extra={"node_id": node.id, "formula": node.formula, "error": message},
        )
        return CalculationResult(node_id=node.id, value=None, error=f"Calculation error: {message}")
