"""
Dependency graph operations using NetworkX.

This module handles:
- Building the task dependency graph (edge: task -> task it depends on)
- Incremental cycle detection before a dependency edge is written
- Looking up which tasks depend on a given task
"""

from typing import Iterable

import networkx as nx

from liveplan.exceptions import CircularDependencyError, NotFoundError
from liveplan.models import Task


def build_dependency_graph(tasks: Iterable[Task]) -> nx.DiGraph:
    """
    Build a DiGraph from every task's ``depends_on`` set.

    Returns a graph where:
    - Nodes are task IDs
    - Edges go from a task to each task it depends on
    """
    graph = nx.DiGraph()
    for task in tasks:
        graph.add_node(task.id)
        for dependency_id in task.depends_on:
            graph.add_edge(task.id, dependency_id)
    return graph


def find_path(graph: nx.DiGraph, start: str, goal: str) -> list[str] | None:
    """
    Depth-first search for a path ``start -> ... -> goal``.

    Each node is expanded at most once, so diamond-shaped graphs stay linear.
    Returns the path including both ends, or None.
    """
    if start not in graph:
        return None
    parents: dict[str, str | None] = {start: None}
    stack = [start]
    while stack:
        node = stack.pop()
        if node == goal:
            path = [node]
            while parents[path[-1]] is not None:
                path.append(parents[path[-1]])
            path.reverse()
            return path
        for successor in sorted(graph.successors(node), reverse=True):
            if successor not in parents:
                parents[successor] = node
                stack.append(successor)
    return None


def check_new_edge(graph: nx.DiGraph, source: str, target: str) -> None:
    """
    Verify that adding ``source depends on target`` keeps the graph acyclic.

    Algorithm:
    1. A self-edge is a 1-cycle
    2. Otherwise search for an existing path target -> source
    3. If one exists, the new edge would close it

    Raises CircularDependencyError carrying the cycle starting at ``source``.
    """
    if source == target:
        raise CircularDependencyError([source])

    path = find_path(graph, target, source)
    if path is not None:
        # path is [target, ..., source]; the new edge closes source -> target
        raise CircularDependencyError([source] + path[:-1])


def check_dependency_set(
    graph: nx.DiGraph,
    task_id: str,
    depends_on: Iterable[str],
) -> None:
    """
    Validate replacing ``task_id``'s whole dependency set.

    The task's current edges are dropped from a copy of the graph and each new
    edge is checked and added in turn, so cycles formed between the new edges
    themselves are caught too.
    """
    candidate = graph.copy()
    if task_id in candidate:
        candidate.remove_edges_from(list(candidate.out_edges(task_id)))
    else:
        candidate.add_node(task_id)

    for dependency_id in sorted(depends_on):
        if dependency_id != task_id and dependency_id not in candidate:
            raise NotFoundError("Task", dependency_id)
        check_new_edge(candidate, task_id, dependency_id)
        candidate.add_edge(task_id, dependency_id)


def dependents(graph: nx.DiGraph, task_id: str) -> list[str]:
    """IDs of tasks that directly depend on ``task_id``."""
    if task_id not in graph:
        return []
    return sorted(graph.predecessors(task_id))
