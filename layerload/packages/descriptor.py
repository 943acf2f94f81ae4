# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package descriptors.

A package directory holds a `package.json` descriptor plus two optional
overlay documents, applied in a fixed order:

1. `local.json` replaces top-level fields wholesale,
2. `package.local.json` deep-merges into nested structures.

Every field that may legally take several shapes (string vs list, list vs
mapping) is normalized here, once. Unrecognized shapes raise
`DescriptorError` instead of being coerced.
"""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlsplit

from layerload.errors import DescriptorError
from layerload.fs import FileSystem
from layerload.packages.author import Author, parse_author

DESCRIPTOR_NAME = "package.json"
REPLACE_OVERLAY_NAME = "local.json"
MERGE_OVERLAY_NAME = "package.local.json"

SATELLITE_TYPE = "using"
DEFAULT_LIB = "lib"
DEFAULT_ENGINES_DIR = "engines"
DEFAULT_PACKAGES_DIR = "packages"


def replace_overlay(document: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
	"""Substitute every top-level field of `overlay` into `document` wholesale."""
	for key, value in overlay.items():
		document[key] = value
	return document


def deep_merge(document: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
	"""Merge `overlay` into `document`; mappings merge field by field, anything else replaces."""
	for key, value in overlay.items():
		current = document.get(key)
		if isinstance(current, dict) and isinstance(value, Mapping):
			deep_merge(current, value)
		else:
			document[key] = value
	return document


def _read_json_object(fs: FileSystem, path: Path) -> dict[str, Any]:
	try:
		text = fs.read(path, encoding="utf-8")
	except UnicodeDecodeError as err:
		raise DescriptorError(f"invalid UTF-8: {err}", path=str(path)) from err
	try:
		data = json.loads(text or "{}")
	except json.JSONDecodeError as err:
		raise DescriptorError(f"invalid JSON: {err}", path=str(path)) from err
	if not isinstance(data, dict):
		raise DescriptorError("descriptor document must be a JSON object", path=str(path))
	return data


def read_descriptor_document(fs: FileSystem, directory: Path, *, replace_layer: bool = True) -> dict[str, Any]:
	"""
	Read `package.json` from `directory` and apply its overlays.

	Satellite scans only honor the deep-merge overlay, so `replace_layer` can
	switch the wholesale layer off.
	"""
	document = _read_json_object(fs, fs.join(directory, DESCRIPTOR_NAME))
	if replace_layer:
		local = fs.join(directory, REPLACE_OVERLAY_NAME)
		if fs.is_file(local):
			replace_overlay(document, _read_json_object(fs, local))
	merge = fs.join(directory, MERGE_OVERLAY_NAME)
	if fs.is_file(merge):
		deep_merge(document, _read_json_object(fs, merge))
	return document


def normalize_package_locator(value: object, *, package: str | None = None) -> str:
	"""
	Normalize one alias target to a top-level package id.

	- a string is already an id (surrounding slashes are dropped),
	- `{"location": url, "path"?: sub}` maps to `host/url-path[/sub]`,
	- `{"catalog": url, "name"?: name}` maps to `host/catalog-dir[/name]`.
	"""
	if isinstance(value, str):
		if not value.strip("/"):
			raise DescriptorError("alias target must be a non-empty id", package=package)
		return value.replace("\\", "/").strip("/")
	if not isinstance(value, Mapping):
		raise DescriptorError(f"invalid package locator: {value!r}", package=package)
	sub = ""
	if value.get("location"):
		location = str(value["location"])
		parts = urlsplit(location)
		url_path = parts.path
		if not url_path.endswith("/"):
			# A trailing file component names a directory of its own
			# (e.g. `.../package.zip` -> `.../package.zip/`).
			url_path += "/"
		base = posixpath.dirname(parts.netloc + url_path)
		sub = str(value.get("path") or "")
	elif value.get("catalog"):
		parts = urlsplit(str(value["catalog"]))
		base = posixpath.dirname(parts.netloc + parts.path)
		sub = str(value.get("name") or "")
	else:
		raise DescriptorError("invalid package descriptor: locator needs 'location' or 'catalog'", package=package)
	target = posixpath.join(base, sub) if sub else base
	target = target.replace("\\", "/").lstrip("/")
	if not target:
		raise DescriptorError(f"invalid package locator: {value!r}", package=package)
	return target


def _str_or_list(value: object, *, what: str, default: list[str], package: str | None) -> list[str]:
	if value is None:
		return list(default)
	if isinstance(value, str):
		return [value]
	if isinstance(value, list) and all(isinstance(v, str) for v in value):
		return list(value)
	raise DescriptorError(f"'{what}' must be a string or a list of strings", package=package)


def _version(value: object, *, package: str | None) -> tuple[str | int, ...]:
	if value is None:
		return ()
	if isinstance(value, str):
		return tuple(value.split(".")) if value else ()
	if isinstance(value, list) and all(isinstance(v, (str, int)) and not isinstance(v, bool) for v in value):
		return tuple(value)
	raise DescriptorError("'version' must be a string or a list of components", package=package)


def _dependencies(value: object, *, package: str | None) -> list[str]:
	if value is None:
		return []
	if isinstance(value, Mapping):
		names = list(value.keys())
	elif isinstance(value, list):
		names = value
	else:
		raise DescriptorError("'dependencies' must be a list of names or an object", package=package)
	out: list[str] = []
	for name in names:
		if not isinstance(name, str) or not name:
			raise DescriptorError("'dependencies' entries must be non-empty strings", package=package)
		if name not in out:
			out.append(name)
	return out


def _string_map(value: object, *, what: str, package: str | None) -> dict[str, str]:
	if value is None:
		return {}
	if not isinstance(value, Mapping) or not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
		raise DescriptorError(f"'{what}' must be an object of strings", package=package)
	return dict(value)


def _alias_map(value: object, *, what: str, package: str | None) -> dict[str, str]:
	if value is None:
		return {}
	if not isinstance(value, Mapping):
		raise DescriptorError(f"'{what}' must be an object", package=package)
	return {str(alias): normalize_package_locator(target, package=package) for alias, target in value.items()}


def _optional_str(document: Mapping[str, Any], key: str, *, package: str | None) -> str | None:
	value = document.get(key)
	if value is None or isinstance(value, str):
		return value
	raise DescriptorError(f"'{key}' must be a string", package=package)


@dataclass
class PackageDescriptor:
	name: str | None = None
	version: tuple[str | int, ...] = ()
	dependencies: list[str] = field(default_factory=list)
	lib: list[str] = field(default_factory=lambda: [DEFAULT_LIB])
	engines: str = DEFAULT_ENGINES_DIR
	packages: list[str] = field(default_factory=lambda: [DEFAULT_PACKAGES_DIR])
	preload: list[str] = field(default_factory=list)
	author: Author | None = None
	maintainer: Author | None = None
	contributors: list[Author] = field(default_factory=list)
	directories: dict[str, str] = field(default_factory=dict)
	using: dict[str, str] = field(default_factory=dict)
	build_using: dict[str, str] = field(default_factory=dict)
	type: str | None = None
	engine: str | None = None
	_directory: Path | None = field(default=None, repr=False, compare=False)

	@property
	def directory(self) -> Path | None:
		return self._directory

	@directory.setter
	def directory(self, value: Path) -> None:
		if self._directory is not None and Path(value) != self._directory:
			raise ValueError(f"package '{self.name}' is already bound to {self._directory}")
		self._directory = Path(value)

	@property
	def satellite(self) -> bool:
		return self.type == SATELLITE_TYPE

	@property
	def is_engine(self) -> bool:
		return self.engine is not None

	def lib_paths(self) -> list[Path]:
		"""Library directories resolved against the base directory."""
		if self._directory is None:
			raise ValueError(f"package '{self.name}' has no base directory")
		return [self._directory / lib for lib in self.lib]

	def resource(self, *terms: str) -> Path:
		"""A path in this package with `directories` remapping applied, existing or not."""
		if self._directory is None:
			raise ValueError(f"package '{self.name}' has no base directory")
		return self._directory.joinpath(*(self.directories.get(t, t) for t in terms))

	@classmethod
	def from_document(cls, document: Mapping[str, Any], *, fallback_name: str | None = None) -> "PackageDescriptor":
		doc = dict(document)
		name = _optional_str(doc, "name", package=fallback_name) or fallback_name
		engine_raw = doc.get("engine")
		if engine_raw is None or engine_raw is False:
			engine = None
		elif engine_raw is True:
			engine = name
		elif isinstance(engine_raw, str):
			engine = engine_raw
		else:
			raise DescriptorError("'engine' must be a string or a boolean", package=name)

		build = doc.get("build")
		if build is not None and not isinstance(build, Mapping):
			raise DescriptorError("'build' must be an object", package=name)
		build_using = _alias_map((build or {}).get("using"), what="build.using", package=name)

		author = parse_author(doc["author"], package=name) if doc.get("author") else None
		maintainer = parse_author(doc["maintainer"], package=name) if doc.get("maintainer") else None
		contributors_raw = doc.get("contributors") or []
		if not isinstance(contributors_raw, list):
			raise DescriptorError("'contributors' must be a list", package=name)
		contributors = [parse_author(c, package=name) for c in contributors_raw]
		listed = {c.name for c in contributors}
		for person in (maintainer, author):
			if person is not None and person.name not in listed:
				contributors.insert(0, person)
				listed.add(person.name)

		engines_dir = _optional_str(doc, "engines", package=name) or DEFAULT_ENGINES_DIR

		return cls(
			name=name,
			version=_version(doc.get("version"), package=name),
			dependencies=_dependencies(doc.get("dependencies"), package=name),
			lib=_str_or_list(doc.get("lib"), what="lib", default=[DEFAULT_LIB], package=name),
			engines=engines_dir,
			packages=_str_or_list(doc.get("packages"), what="packages", default=[DEFAULT_PACKAGES_DIR], package=name),
			preload=_str_or_list(doc.get("preload"), what="preload", default=[], package=name),
			author=author,
			maintainer=maintainer,
			contributors=contributors,
			directories=_string_map(doc.get("directories"), what="directories", package=name),
			using=_alias_map(doc.get("using"), what="using", package=name),
			build_using=build_using,
			type=_optional_str(doc, "type", package=name),
			engine=engine,
		)


def read_descriptor(fs: FileSystem, directory: Path, *, fallback_name: str | None = None) -> PackageDescriptor:
	"""Read, overlay and validate the descriptor of the package at `directory`."""
	try:
		document = read_descriptor_document(fs, directory)
		return PackageDescriptor.from_document(document, fallback_name=fallback_name)
	except DescriptorError as err:
		if err.path is None:
			raise DescriptorError(err.message, package=err.package, path=str(directory)) from err
		raise
