"""
CalcFlow - unit-aware calculation graphs and batch table formulas.

Evaluates directed graphs of scalar calculation nodes whose values carry
compound physical units, and runs spreadsheet-style formulas, filters,
transforms and joins over in-memory tabular datasets.
"""

__version__ = "0.1.0"
__author__ = "CalcFlow Team"
__license__ = "MIT"

from calcflow.batch.engine import BatchFormulaEngine
from calcflow.graph.evaluator import GraphEvaluator

__all__ = ["BatchFormulaEngine", "GraphEvaluator", "__version__"]
