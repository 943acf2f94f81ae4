# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
A loader that multiplexes format-specific delegate loaders by file extension.

Delegates support `load(id, path)` and `reload(id, path)`, and optionally
`has_changed(id, path)`. The default configuration maps both the empty
extension and `.py` to one file-system `Loader` sharing the dispatcher's
search path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence

from layerload.errors import ModuleNotFound
from layerload.fs import LOCAL_FS, FileSystem
from layerload.loader.compile import ModuleFactory
from layerload.loader.loader import Loader, resolve_id, resolve_package_id
from layerload.loader.search_path import SearchPath


class DelegateLoader(Protocol):
	def load(self, top_id: str, path: Path | None = None) -> ModuleFactory: ...

	def reload(self, top_id: str, path: Path | None = None) -> None: ...


class MultiLoader:
	def __init__(
		self,
		paths: SearchPath | None = None,
		*,
		loader: DelegateLoader | None = None,
		loaders: Sequence[tuple[str, DelegateLoader]] | None = None,
		fs: FileSystem = LOCAL_FS,
	) -> None:
		# `paths`, `loader` and `loaders` may be modified in place but not rebound.
		self.paths = paths if paths is not None else SearchPath()
		self.fs = fs
		self.loader = loader if loader is not None else Loader(self.paths, fs=fs)
		self.loaders: list[tuple[str, DelegateLoader]] = (
			list(loaders) if loaders is not None else [("", self.loader), (".py", self.loader)]
		)
		self.using_catalog: Mapping[str, Any] | None = None
		self._factories: dict[str, ModuleFactory] = {}

	def resolve(self, module_id: str, base_id: str | None = None) -> str:
		return resolve_id(module_id, base_id)

	def resolve_pkg(
		self,
		module_id: str,
		base_id: str | None,
		pkg: str | None = None,
		base_pkg: str | None = None,
	) -> tuple[str, str | None]:
		return resolve_package_id(self.using_catalog, module_id, base_id, pkg, base_pkg)

	def _delegate_for(self, path: Path, fallback: DelegateLoader) -> DelegateLoader:
		# An id that already carries an extension is matched by the "" entry;
		# the file's real suffix decides which delegate compiles it.
		name = path.name
		empty: DelegateLoader | None = None
		for extension, delegate in self.loaders:
			if not extension:
				if empty is None:
					empty = delegate
				continue
			if name.endswith(extension):
				return delegate
		return empty if empty is not None else fallback

	def find(self, top_id: str) -> tuple[DelegateLoader, Path]:
		search_paths: Sequence[Path] = [Path("")] if self.fs.is_absolute(top_id) else list(self.paths)
		for extension, delegate in self.loaders:
			for base in search_paths:
				candidate = self.fs.join(base, top_id + extension)
				if self.fs.is_file(candidate):
					return self._delegate_for(candidate, delegate), candidate
		raise ModuleNotFound(f'require error: couldn\'t find "{top_id}"', module_id=top_id)

	def load(
		self,
		top_id: str,
		loader: DelegateLoader | None = None,
		path: Path | None = None,
	) -> ModuleFactory:
		if loader is None or path is None:
			loader, path = self.find(top_id)
		has_changed = getattr(loader, "has_changed", None)
		if top_id not in self._factories or (has_changed is not None and has_changed(top_id, path)):
			self.reload(top_id, loader, path)
		return self._factories[top_id]

	def reload(
		self,
		top_id: str,
		loader: DelegateLoader | None = None,
		path: Path | None = None,
	) -> None:
		if loader is None or path is None:
			loader, path = self.find(top_id)
		loader.reload(top_id, path)
		self._factories[top_id] = loader.load(top_id, path)

	def is_loaded(self, top_id: str) -> bool:
		return top_id in self._factories
