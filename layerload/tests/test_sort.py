# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import itertools
import random

import pytest

from layerload.errors import DependencyCycleError
from layerload.packages.descriptor import PackageDescriptor
from layerload.packages.sort import sort_packages
from layerload.packages.verify import verify_catalog


def _catalog(graph: dict[str, list[str]]) -> dict[str, PackageDescriptor]:
	return {name: PackageDescriptor(name=name, dependencies=list(deps)) for name, deps in graph.items()}


def _assert_topological(order: list[PackageDescriptor], catalog: dict[str, PackageDescriptor]) -> None:
	pos = {d.name: i for i, d in enumerate(order)}
	assert len(order) == len(catalog)
	for name, descriptor in catalog.items():
		for dep in descriptor.dependencies:
			assert pos[name] < pos[dep], f"{name} must precede {dep}"


def test_sort_puts_dependents_before_dependencies() -> None:
	catalog = _catalog({"root": ["a", "b"], "a": ["c"], "b": ["c"], "c": []})
	order = sort_packages(catalog)
	assert order[0].name == "root"
	assert order[-1].name == "c"
	_assert_topological(order, catalog)


def test_sort_has_no_duplicates_for_shared_dependencies() -> None:
	catalog = _catalog({"a": ["b", "c"], "c": ["b"], "b": []})
	order = [d.name for d in sort_packages(catalog)]
	assert sorted(order) == ["a", "b", "c"]
	assert order == ["a", "c", "b"]


def test_sort_is_deterministic() -> None:
	graph = {"root": ["x", "y", "z"], "x": ["z"], "y": [], "z": []}
	first = [d.name for d in sort_packages(_catalog(graph))]
	second = [d.name for d in sort_packages(_catalog(graph))]
	assert first == second


def test_sort_random_acyclic_graphs() -> None:
	rng = random.Random(1234)
	for _ in range(25):
		names = [f"p{i}" for i in range(12)]
		graph: dict[str, list[str]] = {}
		for i, name in enumerate(names):
			later = names[i + 1 :]
			graph[name] = rng.sample(later, k=min(len(later), rng.randint(0, 3)))
		shuffled = dict(sorted(graph.items(), key=lambda _: rng.random()))
		catalog = _catalog(shuffled)
		_assert_topological(sort_packages(catalog), catalog)


def test_sort_handles_deep_chains_without_recursion() -> None:
	depth = 5000
	graph = {f"n{i}": [f"n{i + 1}"] for i in range(depth)}
	graph[f"n{depth}"] = []
	order = sort_packages(_catalog(graph))
	assert [d.name for d in order] == [f"n{i}" for i in range(depth + 1)]


def test_sort_rejects_cycle_with_full_path() -> None:
	catalog = _catalog({"root": ["a"], "a": ["b"], "b": ["a"]})
	with pytest.raises(DependencyCycleError) as excinfo:
		sort_packages(catalog)
	err = excinfo.value
	assert err.cycle == ("root", "a", "b", "a")
	assert "Dependency cycle detected among packages: root -> a -> b -> a" in str(err)
	assert err.reason_code == "dependency-cycle"


def test_sort_cycle_path_excludes_pending_siblings() -> None:
	catalog = _catalog({"top": ["sib", "x"], "sib": [], "x": ["y"], "y": ["x"]})
	with pytest.raises(DependencyCycleError) as excinfo:
		sort_packages(catalog)
	assert excinfo.value.cycle == ("top", "x", "y", "x")


def test_sort_cycle_path_follows_discovery_not_stack_duplicates() -> None:
	catalog = _catalog({"root": ["a", "b"], "a": ["b"], "b": ["a"]})
	with pytest.raises(DependencyCycleError) as excinfo:
		sort_packages(catalog)
	assert excinfo.value.cycle == ("root", "b", "a", "b")


def test_sort_rejects_self_dependency() -> None:
	with pytest.raises(DependencyCycleError, match="solo -> solo"):
		sort_packages(_catalog({"solo": ["solo"]}))


@pytest.mark.parametrize("names", list(itertools.permutations(["a", "b", "c"])))
def test_sort_cycle_detected_in_any_enumeration_order(names: tuple[str, ...]) -> None:
	graph = {"a": ["b"], "b": ["c"], "c": ["a"]}
	catalog = _catalog({n: graph[n] for n in names})
	with pytest.raises(DependencyCycleError) as excinfo:
		sort_packages(catalog)
	assert len(set(excinfo.value.cycle) & {"a", "b", "c"}) >= 2


def test_sort_drops_package_with_dangling_edge() -> None:
	catalog = _catalog({"a": ["ghost"], "b": []})
	order = sort_packages(catalog)
	assert [d.name for d in order] == ["b"]
	assert "a" not in catalog


def test_verify_then_sort_sizes_match() -> None:
	catalog = _catalog({"root": ["a"], "a": [], "orphan": ["missing"], "child": ["orphan"]})
	verify_catalog(catalog)
	order = sort_packages(catalog)
	assert len(order) == len(catalog) == 2
