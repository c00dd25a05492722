"""
L1 Domain — prerequisite graph utilities (pure).

Tools declare prerequisites as a static edge set.  These helpers
validate the graph (Kahn's algorithm), expand a request to its
prerequisite closure, and produce a stable install order.
No I/O, no subprocess.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


def validate_graph(graph: Mapping[str, Iterable[str]]) -> list[str]:
    """Validate the prerequisite graph.

    Checks for:
    - References to unknown tool ids
    - Cycles (Kahn's algorithm)

    Args:
        graph: ``{tool_id: prerequisite ids}``.

    Returns:
        List of error strings (empty = valid).
    """
    errors: list[str] = []

    for tool_id, deps in graph.items():
        for dep in deps:
            if dep not in graph:
                errors.append(f"Tool '{tool_id}' requires unknown tool '{dep}'")

    if errors:
        return errors

    if len(_kahn(graph, list(graph))) < len(graph):
        errors.append("Dependency cycle detected in tool prerequisites")

    return errors


def prerequisite_closure(
    tool_ids: Iterable[str],
    graph: Mapping[str, Iterable[str]],
) -> set[str]:
    """Requested ids plus everything they transitively require."""
    closure: set[str] = set()
    stack = list(tool_ids)
    while stack:
        tid = stack.pop()
        if tid in closure:
            continue
        closure.add(tid)
        stack.extend(graph.get(tid, ()))
    return closure


def install_order(
    tool_ids: Iterable[str],
    graph: Mapping[str, Iterable[str]],
    *,
    include_prerequisites: bool = True,
) -> list[str]:
    """Topologically sorted install order.

    Ties are broken by the order ids appear in ``graph`` so output is
    deterministic.  Prerequisites outside the request are only added
    when ``include_prerequisites`` is set.

    Raises:
        ValueError: If the selected subgraph contains a cycle.
    """
    requested = list(dict.fromkeys(tool_ids))
    selected = prerequisite_closure(requested, graph) if include_prerequisites else set(requested)
    ordering = [tid for tid in graph if tid in selected]
    ordering += [tid for tid in requested if tid not in graph]

    order = _kahn(graph, ordering)
    if len(order) < len(ordering):
        raise ValueError("Dependency cycle detected in tool prerequisites")
    return order


def dependents(tool_id: str, graph: Mapping[str, Iterable[str]]) -> set[str]:
    """All tools that (transitively) require ``tool_id``."""
    found: set[str] = set()
    changed = True
    while changed:
        changed = False
        for tid, deps in graph.items():
            if tid in found:
                continue
            if tool_id in deps or found.intersection(deps):
                found.add(tid)
                changed = True
    return found


def _kahn(graph: Mapping[str, Iterable[str]], nodes: list[str]) -> list[str]:
    node_set = set(nodes)
    in_degree = {n: 0 for n in nodes}
    adj: dict[str, list[str]] = {n: [] for n in nodes}
    for n in nodes:
        for dep in graph.get(n, ()):
            if dep in node_set:
                in_degree[n] += 1
                adj[dep].append(n)

    queue = [n for n in nodes if in_degree[n] == 0]
    order: list[str] = []
    while queue:
        node = queue.pop(0)
        order.append(node)
        for successor in adj[node]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)
    return order
