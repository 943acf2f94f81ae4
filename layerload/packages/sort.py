# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Topological ordering of the package catalog.

Iterative depth-first search with an explicit stack and an explicit per-node
state, so arbitrarily deep dependency chains never touch the interpreter's
recursion limit. The result lists every package before all of the packages it
depends on (most dependent first).

A back edge aborts the whole sort with `DependencyCycleError`; no partial
order is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

from layerload.errors import DependencyCycleError
from layerload.packages.catalog import Catalog
from layerload.packages.descriptor import PackageDescriptor

logger = logging.getLogger(__name__)


class NodeState(Enum):
	UNSEEN = auto()
	DISCOVERED = auto()
	FINISHED = auto()


@dataclass
class _Visit:
	state: NodeState = NodeState.UNSEEN
	discovered_at: int | None = None
	finished_at: int | None = None
	dropped: bool = False


def sort_packages(catalog: Catalog) -> list[PackageDescriptor]:
	visits: dict[str, _Visit] = {name: _Visit() for name in catalog}
	finished: list[str] = []
	clock = 0

	for start in list(catalog):
		if visits[start].state is not NodeState.UNSEEN:
			continue
		stack: list[str] = [start]
		while stack:
			name = stack[-1]
			visit = visits[name]

			if visit.state is NodeState.FINISHED:
				# A stale duplicate pushed by an earlier sibling.
				stack.pop()
				continue

			if visit.state is NodeState.DISCOVERED:
				visit.state = NodeState.FINISHED
				visit.finished_at = clock
				clock += 1
				stack.pop()
				if not visit.dropped:
					finished.append(name)
				continue

			visit.state = NodeState.DISCOVERED
			visit.discovered_at = clock
			clock += 1
			descriptor = catalog[name]
			pending: list[str] = []
			for dependency in descriptor.dependencies:
				if dependency not in catalog:
					logger.debug(
						"Throwing away package '%s' because it depends on the package '%s' which is not installed.",
						name,
						dependency,
					)
					catalog.pop(name, None)
					visit.dropped = True
					continue
				dep_visit = visits[dependency]
				if dep_visit.state is NodeState.DISCOVERED:
					# Discovered-but-unfinished nodes are exactly the current DFS path.
					path = sorted(
						(n for n, v in visits.items() if v.state is NodeState.DISCOVERED),
						key=lambda n: visits[n].discovered_at or 0,
					)
					cycle = tuple(path) + (dependency,)
					raise DependencyCycleError(
						"Dependency cycle detected among packages: " + " -> ".join(cycle),
						package=name,
						cycle=cycle,
					)
				if dep_visit.state is NodeState.FINISHED:
					continue
				pending.append(dependency)
			stack.extend(pending)

	finished.reverse()
	return [catalog[name] for name in finished if name in catalog]
