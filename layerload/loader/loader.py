# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
File-system backed module loader.

Resolution order is pinned: extensions are tried in the OUTER loop and search
path directories in the inner loop, so a later directory matched by an
earlier extension wins over an earlier directory matched by a later
extension. Absolute ids only search the root.

Compiled factories are cached per id and replaced (never mutated) when the
resolved file's modification time advances past the one recorded at fetch
time. Staleness is only evaluated when the filesystem exposes
`last_modified`.
"""

from __future__ import annotations

import logging
import posixpath
import re
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from layerload.config import DEFAULT_EXTENSIONS
from layerload.errors import ModuleNotFound, UnknownPackageError
from layerload.fs import LOCAL_FS, FileSystem
from layerload.loader.compile import Compiler, ModuleFactory, compile_module

logger = logging.getLogger(__name__)

MODULE_ENCODING = "utf-8"

# The line is blanked rather than removed so line numbers stay aligned.
_SHEBANG_RE = re.compile(r"\A#![^\n]*\n")


def resolve_id(module_id: str, base_id: str | None = None) -> str:
	"""
	Resolve a relative id (leading `.`) against the directory of `base_id`.

	Ids always use forward slashes.
	"""
	module_id = str(module_id).replace("\\", "/")
	if module_id.startswith(".") and base_id is not None:
		module_id = posixpath.join(posixpath.dirname(str(base_id).replace("\\", "/")), module_id)
	return posixpath.normpath(module_id)


def resolve_package_id(
	using_catalog: Mapping[str, Any] | None,
	module_id: str,
	base_id: str | None,
	pkg: str | None = None,
	base_pkg: str | None = None,
) -> tuple[str, str | None]:
	"""
	Resolve `module_id` scoped to a satellite package.

	Returns `(resolved_id, package_id)`. With an explicit `pkg`, the alias map
	of `base_pkg` is consulted first, then `pkg` as a top-level satellite id.
	Without `pkg`, relative ids stay within `base_pkg`; anything else resolves
	against the system search path (package id `None`).
	"""
	if not using_catalog:
		return resolve_id(module_id, base_id), None
	if pkg:
		if base_pkg and base_pkg in using_catalog:
			aliases = using_catalog[base_pkg].packages
			target = aliases.get(pkg)
			if target:
				if target not in using_catalog:
					raise UnknownPackageError(
						f"Package '{target}' aliased with '{pkg}' in '{base_pkg}' not found",
						package=target,
						module_id=module_id,
					)
				lib_path = using_catalog[target].lib_path
				return resolve_id("./" + module_id, lib_path.as_posix() + "/"), target
		if pkg in using_catalog:
			lib_path = using_catalog[pkg].lib_path
			return resolve_id("./" + module_id, lib_path.as_posix() + "/"), pkg
		raise UnknownPackageError(
			f"Package '{pkg}' not aliased in '{base_pkg}' nor a top-level ID",
			package=pkg,
			module_id=module_id,
		)
	if module_id.startswith(".") and base_pkg:
		if base_id is not None and posixpath.isabs(base_id.replace("\\", "/")):
			base = base_id
		elif base_pkg in using_catalog:
			base = (using_catalog[base_pkg].lib_path / (base_id or "")).as_posix()
		else:
			raise UnknownPackageError(f"Base package '{base_pkg}' not known", package=base_pkg, module_id=module_id)
		return resolve_id(module_id, base), base_pkg
	return resolve_id(module_id, base_id), None


class Loader:
	"""
	Loads plain-text modules from the directories of a shared search path.

	`paths` is held by reference: whoever owns it may replace its contents
	and this loader sees the change on the next lookup.
	"""

	def __init__(
		self,
		paths: Sequence[Path],
		*,
		extensions: Sequence[str] = DEFAULT_EXTENSIONS,
		compiler: Compiler = compile_module,
		fs: FileSystem = LOCAL_FS,
	) -> None:
		self.paths = paths
		self.extensions = list(extensions)
		self.compiler = compiler
		self.fs = fs
		self.using_catalog: Mapping[str, Any] | None = None
		self._factories: dict[str, ModuleFactory] = {}
		self._timestamps: dict[Path, int | float] = {}
		self._mtime: Callable[[Path], int | float] | None = getattr(fs, "last_modified", None)

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

	def find(self, top_id: str) -> Path:
		search_paths: Sequence[Path] = [Path("")] if self.fs.is_absolute(top_id) else list(self.paths)
		for extension in self.extensions:
			for base in search_paths:
				candidate = self.fs.join(base, top_id + extension)
				if self.fs.is_file(candidate):
					return candidate
		raise ModuleNotFound(f'require error: couldn\'t find "{top_id}"', module_id=top_id)

	def fetch(self, top_id: str, path: Path | None = None) -> str:
		"""Read the text of `top_id`, recording the file's modification time."""
		if path is None:
			path = self.find(top_id)
		if self._mtime is not None:
			self._timestamps[path] = self._mtime(path)
		logger.debug("loader: fetching %s", top_id)
		text = self.fs.read(path, encoding=MODULE_ENCODING)
		return _SHEBANG_RE.sub("\n", text, count=1)

	def compile(self, text: str, top_id: str, path: Path | None = None) -> ModuleFactory:
		if path is None:
			path = self.find(top_id)
		return self.compiler(text, path, 1)

	def load(self, top_id: str, path: Path | None = None) -> ModuleFactory:
		"""The cached factory for `top_id`, recompiled first if absent or stale."""
		if top_id not in self._factories:
			self.reload(top_id, path)
		elif self._mtime is not None:
			if path is None:
				path = self.find(top_id)
			if self.has_changed(top_id, path):
				self.reload(top_id, path)
		return self._factories[top_id]

	def reload(self, top_id: str, path: Path | None = None) -> None:
		"""Fetch and compile unconditionally, replacing any cached factory."""
		if path is None:
			path = self.find(top_id)
		self._factories[top_id] = self.compile(self.fetch(top_id, path), top_id, path)

	def is_loaded(self, top_id: str) -> bool:
		return top_id in self._factories

	def has_changed(self, top_id: str, path: Path | None = None) -> bool:
		if self._mtime is None:
			return False
		if path is None:
			path = self.find(top_id)
		recorded = self._timestamps.get(path)
		return recorded is None or self._mtime(path) > recorded
