# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Process bootstrap.

Builds the initial search path from the prefixes, installs the dispatcher,
then replaces the path with the one synthesized from the discovered
packages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from layerload.config import LayerloadOptions
from layerload.fs import LOCAL_FS, FileSystem
from layerload.loader.compile import ModuleFactory, compile_json
from layerload.loader.loader import Loader
from layerload.loader.multi import MultiLoader
from layerload.loader.search_path import SearchPath
from layerload.packages.descriptor import DESCRIPTOR_NAME
from layerload.packages.load import PackageState, load_packages

logger = logging.getLogger(__name__)


def initial_paths(prefixes: Iterable[Path], engines: Sequence[str]) -> list[Path]:
	"""`<prefix>/engines/<engine>/lib` for each active engine, then `<prefix>/lib`, per prefix."""
	out: list[Path] = []
	for prefix in prefixes:
		for engine in engines:
			out.append(Path(prefix) / "engines" / engine / "lib")
		out.append(Path(prefix) / "lib")
	return out


def enclosing_package_prefixes(program: Path, *, fs: FileSystem = LOCAL_FS) -> list[Path]:
	"""Directories above `program` that hold a descriptor, most specific first."""
	out: list[Path] = []
	for parent in reversed(fs.canonical(program).parents):
		if fs.is_file(fs.join(parent, DESCRIPTOR_NAME)):
			out.insert(0, parent)
	return out


@dataclass
class Runtime:
	options: LayerloadOptions
	search_path: SearchPath
	loader: MultiLoader
	packages: PackageState

	def find(self, top_id: str) -> Path:
		return self.loader.find(top_id)[1]

	def load(self, top_id: str) -> ModuleFactory:
		return self.loader.load(top_id)

	def bin_path(self) -> list[Path]:
		"""Existing `bin` directories of the ordered packages."""
		fs = self.packages.fs
		out: list[Path] = []
		for descriptor in self.packages.order:
			if descriptor.directory is None:
				continue
			candidate = fs.join(descriptor.directory, "bin")
			if fs.is_directory(candidate) and candidate not in out:
				out.append(candidate)
		return out


def bootstrap(
	options: LayerloadOptions,
	*,
	fs: FileSystem = LOCAL_FS,
	includes: Sequence[Path] = (),
) -> Runtime:
	prefixes: list[Path] = [Path(p) for p in options.prefixes]
	search_path = SearchPath(initial_paths(prefixes, options.engines))
	search_path.extend(options.extra_paths)

	source = Loader(search_path, extensions=options.extensions, fs=fs)
	data = Loader(search_path, extensions=("", ".json"), compiler=compile_json, fs=fs)
	loader = MultiLoader(
		search_path,
		loader=source,
		loaders=[("", source), (".py", source), (".json", data)],
		fs=fs,
	)

	if options.program is not None:
		prefixes[0:0] = enclosing_package_prefixes(options.program, fs=fs)
	if options.package_home is not None:
		prefixes.insert(0, options.package_home)

	if options.no_packages:
		packages = PackageState(fs=fs)
	else:
		packages = load_packages(
			[*options.packages, *prefixes],
			search_path,
			loader=loader,
			engines=options.engines,
			fs=fs,
			strict=options.strict,
			include_build_dependencies=options.include_build_dependencies,
		)
	for include in reversed(list(includes)):
		search_path.include(include)
	logger.debug("search path: %s", [str(p) for p in search_path])
	return Runtime(options=options, search_path=search_path, loader=loader, packages=packages)
