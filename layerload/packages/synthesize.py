# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Search path synthesis.

Walks the sorted package sequence (most dependent first) and PREPENDS each
package's contribution, so packages later in the sequence, closer to being
leaf dependencies, end up with higher precedence than the packages that
depend on them. Within one contribution, engine-specific directories come
before the package's generic library directories.

Engine providers (descriptors with an `engine` field) are registered by
engine name and only contribute their library directories when that engine
is active.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from layerload.fs import LOCAL_FS, FileSystem
from layerload.loader.search_path import SearchPath
from layerload.packages.descriptor import PackageDescriptor

logger = logging.getLogger(__name__)

EngineRegistry = dict[str, PackageDescriptor]


class ModuleSource(Protocol):
	def load(self, top_id: str) -> object: ...


@dataclass
class Analysis:
	lib_paths: list[Path] = field(default_factory=list)
	preload_modules: list[str] = field(default_factory=list)
	engines: EngineRegistry = field(default_factory=dict)


def engine_lib_paths(descriptor: PackageDescriptor, engines: Iterable[str], *, fs: FileSystem = LOCAL_FS) -> list[Path]:
	"""Engine-specific library directories of an ordinary package that exist on disk."""
	if descriptor.directory is None:
		raise ValueError(f"package '{descriptor.name}' has no base directory")
	out: list[Path] = []
	for engine in engines:
		candidate = fs.join(descriptor.directory, descriptor.engines, engine, "lib")
		if fs.is_directory(candidate):
			out.append(candidate)
	return out


def analyze(order: Sequence[PackageDescriptor], engines: Sequence[str], *, fs: FileSystem = LOCAL_FS) -> Analysis:
	analysis = Analysis()
	active = list(engines)
	for descriptor in order:
		lib_paths = descriptor.lib_paths()
		if descriptor.is_engine:
			name = descriptor.engine or descriptor.name or ""
			analysis.engines[name] = descriptor
			if name in active:
				analysis.lib_paths[0:0] = lib_paths
		else:
			analysis.lib_paths[0:0] = engine_lib_paths(descriptor, active, fs=fs) + lib_paths
		if descriptor.preload:
			analysis.preload_modules[0:0] = descriptor.preload
	return analysis


def synthesize(analysis: Analysis, search_path: SearchPath) -> None:
	search_path.replace(analysis.lib_paths)


def preload_modules(module_ids: Iterable[str], loader: ModuleSource, *, strict: bool = False) -> list[str]:
	"""
	Resolve each preload id through `loader`.

	A failure is logged and skipped so the remaining preloads still run; in
	strict mode it propagates. Returns the ids that failed.
	"""
	failed: list[str] = []
	for module_id in module_ids:
		logger.debug("Preloading module: %s", module_id)
		try:
			loader.load(module_id)
		except Exception as err:
			logger.warning("Error preloading module: %s %s", module_id, err)
			if strict:
				raise
			failed.append(module_id)
	return failed
