# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package loading pipeline.

discover -> verify -> sort -> analyze -> synthesize -> preload

The results are collected in one owned `PackageState` instead of module
globals; the search path it installs into is shared with the loaders by
reference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, Sequence

from layerload.config import DEFAULT_ENGINES
from layerload.errors import ResourceNotFound
from layerload.fs import LOCAL_FS, FileSystem
from layerload.loader.search_path import SearchPath
from layerload.packages.catalog import Catalog, UsingCatalog, read_packages
from layerload.packages.descriptor import PackageDescriptor
from layerload.packages.sort import sort_packages
from layerload.packages.synthesize import EngineRegistry, analyze, preload_modules, synthesize
from layerload.packages.verify import verify_catalog

logger = logging.getLogger(__name__)


class PackageAwareLoader(Protocol):
	using_catalog: Mapping[str, Any] | None

	def load(self, top_id: str) -> object: ...


@dataclass
class PackageState:
	catalog: Catalog = field(default_factory=dict)
	using_catalog: UsingCatalog = field(default_factory=dict)
	order: list[PackageDescriptor] = field(default_factory=list)
	root: PackageDescriptor | None = None
	engines: EngineRegistry = field(default_factory=dict)
	preload_modules: list[str] = field(default_factory=list)
	failed_preloads: list[str] = field(default_factory=list)
	fs: FileSystem = field(default=LOCAL_FS, repr=False, compare=False)

	def resources(self, *terms: str) -> list[Path]:
		"""
		Every existing file or directory matching `terms` across the ordered packages.

		Each term may be remapped per package through its `directories` table.
		An absolute path is returned as-is when it exists.
		"""
		joined = self.fs.join(*terms)
		if self.fs.is_absolute(joined):
			return [joined] if self.fs.exists(joined) else []
		out: list[Path] = []
		for descriptor in self.order:
			candidate = descriptor.resource(*terms)
			if self.fs.exists(candidate):
				out.append(candidate)
		return out

	def resource_if_exists(self, *terms: str) -> Path | None:
		found = self.resources(*terms)
		return found[0] if found else None

	def resource(self, *terms: str) -> Path:
		found = self.resource_if_exists(*terms)
		if found is None:
			path = self.fs.join(*terms)
			raise ResourceNotFound(f"Could not locate {path} in any package.", path=str(path))
		return found


def load_packages(
	prefixes: Iterable[Path | str],
	search_path: SearchPath,
	*,
	loader: PackageAwareLoader | None = None,
	engines: Sequence[str] = DEFAULT_ENGINES,
	fs: FileSystem = LOCAL_FS,
	strict: bool = False,
	include_build_dependencies: bool = False,
	using_catalog: UsingCatalog | None = None,
) -> PackageState:
	"""
	Discover, order and install the packages found under `prefixes`.

	The synthesized directories replace the contents of `search_path` in
	place. When `loader` is given it receives the using-catalog and resolves
	the preload modules.
	"""
	discovery = read_packages(
		prefixes,
		using_catalog=using_catalog,
		fs=fs,
		strict=strict,
		include_build_dependencies=include_build_dependencies,
	)
	catalog = discovery.catalog
	verify_catalog(catalog)
	order = sort_packages(catalog)
	analysis = analyze(order, engines, fs=fs)
	synthesize(analysis, search_path)

	state = PackageState(
		catalog=catalog,
		using_catalog=discovery.using_catalog,
		order=order,
		root=discovery.root,
		engines=analysis.engines,
		preload_modules=list(analysis.preload_modules),
		fs=fs,
	)
	if loader is not None:
		loader.using_catalog = discovery.using_catalog
		state.failed_preloads = preload_modules(analysis.preload_modules, loader, strict=strict)
	logger.debug("loaded %d package(s); search path has %d entries", len(order), len(search_path))
	return state
