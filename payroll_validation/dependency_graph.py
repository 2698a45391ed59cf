"""
Dependency graph of validators.

Edges come from each validator's declared ``AgentDescriptor.dependencies``.
They are ordering hints only: the graph decides *when* a validator runs and
where its results land in the report, never *whether* it runs.
"""

from __future__ import annotations

import heapq
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from .exceptions import DependencyCycleError
from .models import AgentDescriptor

logger = logging.getLogger(__name__)


@dataclass
class DependencyGraph:
    """Directed graph of validator names (edge: validator -> dependency)."""

    nodes: Dict[str, Set[str]] = field(default_factory=dict)  # validator -> dependencies
    reverse_nodes: Dict[str, Set[str]] = field(default_factory=dict)  # validator -> dependents
    priorities: Dict[str, int] = field(default_factory=dict)
    declaration_order: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_descriptors(cls, descriptors: Iterable[AgentDescriptor]) -> "DependencyGraph":
        """Build the graph, dropping edges to validators that are not registered."""
        descriptors = list(descriptors)
        graph = cls()
        for position, descriptor in enumerate(descriptors):
            graph.add_node(descriptor.name, priority=descriptor.priority, position=position)

        for descriptor in descriptors:
            for dependency in descriptor.dependencies:
                if dependency == descriptor.name:
                    raise DependencyCycleError(
                        "Validator depends on itself", cycle_members=[descriptor.name]
                    )
                if dependency not in graph.nodes:
                    logger.warning(
                        f"Validator {descriptor.name} declares unknown dependency "
                        f"{dependency}; ignoring the ordering hint"
                    )
                    continue
                graph.add_dependency(descriptor.name, dependency)
        return graph

    def add_node(self, name: str, *, priority: int = 0, position: int | None = None) -> None:
        if name in self.nodes:
            raise ValueError(f"Validator registered twice: {name}")
        self.nodes[name] = set()
        self.reverse_nodes.setdefault(name, set())
        self.priorities[name] = priority
        self.declaration_order[name] = len(self.declaration_order) if position is None else position

    def add_dependency(self, name: str, dependency: str) -> None:
        """Add a dependency relationship."""
        if name not in self.nodes:
            self.add_node(name)
        if dependency not in self.nodes:
            self.add_node(dependency)

        self.nodes[name].add(dependency)
        self.reverse_nodes[dependency].add(name)

    def get_dependencies(self, name: str) -> Set[str]:
        """Get direct dependencies of a validator."""
        return self.nodes.get(name, set())

    def get_dependents(self, name: str) -> Set[str]:
        """Get direct dependents of a validator."""
        return self.reverse_nodes.get(name, set())

    def get_transitive_dependencies(self, name: str) -> Set[str]:
        """Get all transitive dependencies of a validator."""
        visited = set()
        queue = deque([name])

        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)

            for dep in self.get_dependencies(current):
                if dep not in visited:
                    queue.append(dep)

        visited.discard(name)
        return visited

    def _sort_key(self, name: str):
        # Higher priority first, then declaration order
        return (-self.priorities.get(name, 0), self.declaration_order.get(name, 0), name)

    def topological_sort(self) -> List[str]:
        """Deterministic topological order.

        Among validators whose dependencies are all placed, the one with the
        highest priority goes next; ties fall back to declaration order.

        Raises:
            DependencyCycleError: The graph contains a cycle
        """
        in_degree = {name: len(deps) for name, deps in self.nodes.items()}
        ready = [(self._sort_key(name), name) for name, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        result = []

        while ready:
            _, current = heapq.heappop(ready)
            result.append(current)

            for dependent in self.get_dependents(current):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (self._sort_key(dependent), dependent))

        if len(result) != len(self.nodes):
            raise DependencyCycleError(
                "Circular dependency detected between validators",
                cycle_members=list(set(self.nodes) - set(result)),
            )

        return result

    def execution_layers(self) -> List[List[str]]:
        """Group validators into layers that can run concurrently.

        A validator's layer is one past the deepest layer among its
        dependencies, so every layer only depends on earlier ones. Inside a
        layer validators keep the deterministic topological order.
        """
        order = self.topological_sort()
        depth: Dict[str, int] = {}
        for name in order:
            deps = self.get_dependencies(name)
            depth[name] = 1 + max((depth[d] for d in deps), default=-1)

        layers: Dict[int, List[str]] = defaultdict(list)
        for name in order:
            layers[depth[name]].append(name)
        return [layers[i] for i in sorted(layers)]
