"""Unit tests for validator dependency resolution."""

import pytest

from payroll_validation.dependency_graph import DependencyGraph
from payroll_validation.exceptions import DependencyCycleError
from payroll_validation.models import AgentDescriptor
from payroll_validation.validators import VALIDATOR_CLASSES


def _descriptor(name, priority=0, dependencies=()):
    return AgentDescriptor(name=name, description=name, priority=priority, dependencies=dependencies)


class TestTopologicalSort:
    def test_dependencies_come_first(self):
        graph = DependencyGraph.from_descriptors(
            [_descriptor("B", dependencies=("A",)), _descriptor("C", dependencies=("A",)), _descriptor("A")]
        )
        order = graph.topological_sort()
        assert order.index("A") < order.index("B")
        assert order.index("A") < order.index("C")

    def test_priority_breaks_ties(self):
        graph = DependencyGraph.from_descriptors(
            [_descriptor("LOW", priority=1), _descriptor("HIGH", priority=9), _descriptor("MID", priority=5)]
        )
        assert graph.topological_sort() == ["HIGH", "MID", "LOW"]

    def test_declaration_order_breaks_equal_priority(self):
        graph = DependencyGraph.from_descriptors([_descriptor("Z"), _descriptor("A"), _descriptor("M")])
        assert graph.topological_sort() == ["Z", "A", "M"]

    def test_cycle_raises(self):
        graph = DependencyGraph.from_descriptors(
            [_descriptor("A", dependencies=("B",)), _descriptor("B", dependencies=("A",)), _descriptor("C")]
        )
        with pytest.raises(DependencyCycleError) as exc_info:
            graph.topological_sort()
        assert exc_info.value.cycle_members == ["A", "B"]

    def test_self_dependency_raises(self):
        with pytest.raises(DependencyCycleError):
            DependencyGraph.from_descriptors([_descriptor("A", dependencies=("A",))])

    def test_unknown_dependency_ignored(self):
        graph = DependencyGraph.from_descriptors([_descriptor("A", dependencies=("Missing",))])
        assert graph.get_dependencies("A") == set()
        assert graph.topological_sort() == ["A"]

    def test_duplicate_node_rejected(self):
        graph = DependencyGraph()
        graph.add_node("A")
        with pytest.raises(ValueError):
            graph.add_node("A")


class TestExecutionLayers:
    def test_layers_follow_dependency_depth(self):
        graph = DependencyGraph.from_descriptors(
            [
                _descriptor("A"),
                _descriptor("B", dependencies=("A",)),
                _descriptor("C", dependencies=("B",)),
                _descriptor("D"),
            ]
        )
        assert graph.execution_layers() == [["A", "D"], ["B"], ["C"]]

    def test_transitive_dependencies(self):
        graph = DependencyGraph.from_descriptors(
            [_descriptor("A"), _descriptor("B", dependencies=("A",)), _descriptor("C", dependencies=("B",))]
        )
        assert graph.get_transitive_dependencies("C") == {"A", "B"}
        assert graph.get_dependents("A") == {"B"}

    def test_builtin_catalog_is_acyclic(self):
        graph = DependencyGraph.from_descriptors(cls.descriptor for cls in VALIDATOR_CLASSES)
        layers = graph.execution_layers()
        placed = {name: index for index, layer in enumerate(layers) for name in layer}
        assert len(placed) == len(VALIDATOR_CLASSES)
        for cls in VALIDATOR_CLASSES:
            for dependency in cls.descriptor.dependencies:
                assert placed[dependency] < placed[cls.descriptor.name]
