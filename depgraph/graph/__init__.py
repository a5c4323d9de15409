"""Graph module for dependency traversal, cycle detection and conflict analysis.

This module provides the per-request adjacency view over a user's dependency
edges and the analyses built on top of it.
"""

from depgraph.graph.conflict_analyzer import ConflictAnalyzer, ScheduleConflict
from depgraph.graph.cycle_detector import CycleCheckResult, CycleDetector
from depgraph.graph.dependency_graph import DependencyGraph

__all__ = [
    "ConflictAnalyzer",
    "CycleCheckResult",
    "CycleDetector",
    "DependencyGraph",
    "ScheduleConflict",
]
