# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package discovery.

Builds the primary catalog (name -> descriptor) and the using-catalog
(satellite id -> lib path/directory/alias map) from an ordered list of root
prefixes through a breadth-first search:

- each prefix seeds its own queue; earlier prefixes shadow later ones because
  the first package cataloged under a name wins,
- a canonical-directory visited set blocks symlink loops,
- sub-package directories (`packages`, default `packages/`) are enqueued,
- a dependency naming a satellite id that is not cataloged yet enqueues the
  satellite's directory bound to that name, promoting it into the catalog.

Descriptor failures are logged and the package is skipped; with `strict`
the failure aborts discovery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable

from layerload.errors import DescriptorError
from layerload.fs import LOCAL_FS, FileSystem
from layerload.packages.descriptor import (
	DEFAULT_LIB,
	DESCRIPTOR_NAME,
	PackageDescriptor,
	read_descriptor,
	read_descriptor_document,
)

logger = logging.getLogger(__name__)

USING_DIR = "using"

Catalog = dict[str, PackageDescriptor]


@dataclass
class UsingEntry:
	lib_path: Path
	directory: Path
	packages: dict[str, str] = field(default_factory=dict)


UsingCatalog = dict[str, UsingEntry]


@dataclass(frozen=True)
class _QueueItem:
	directory: Path
	alias: str | None = None


def update_using_catalog(
	using_catalog: UsingCatalog,
	directory: Path,
	package_id: str,
	descriptor: PackageDescriptor,
	*,
	include_build_dependencies: bool = False,
) -> UsingEntry:
	"""Register (or extend) the satellite `package_id` rooted at `directory`."""
	entry = using_catalog.get(package_id)
	if entry is None:
		entry = UsingEntry(lib_path=directory / DEFAULT_LIB, directory=directory)
		using_catalog[package_id] = entry
	entry.packages.update(descriptor.using)
	if include_build_dependencies:
		entry.packages.update(descriptor.build_using)
	return entry


def read_using(
	using_catalog: UsingCatalog,
	base: Path,
	*,
	fs: FileSystem = LOCAL_FS,
	sub: PurePosixPath = PurePosixPath("."),
	include_build_dependencies: bool = False,
) -> None:
	"""
	Scan `base` for satellite packages.

	The first directory level holding a descriptor is a package; its id is the
	slash-joined path relative to `base` and nothing below it is visited.
	"""
	path = base.joinpath(*sub.parts) if sub.parts else base
	if not fs.is_directory(path):
		return
	if fs.is_file(fs.join(path, DESCRIPTOR_NAME)):
		package_id = sub.as_posix()
		document = read_descriptor_document(fs, path, replace_layer=False)
		descriptor = PackageDescriptor.from_document(document, fallback_name=package_id)
		update_using_catalog(
			using_catalog,
			path,
			package_id,
			descriptor,
			include_build_dependencies=include_build_dependencies,
		)
		return
	for child in fs.list(path):
		read_using(
			using_catalog,
			base,
			fs=fs,
			sub=sub / child,
			include_build_dependencies=include_build_dependencies,
		)


@dataclass
class DiscoveryResult:
	catalog: Catalog
	using_catalog: UsingCatalog
	root: PackageDescriptor | None


def read_packages(
	prefixes: Iterable[Path | str],
	catalog: Catalog | None = None,
	using_catalog: UsingCatalog | None = None,
	*,
	fs: FileSystem = LOCAL_FS,
	strict: bool = False,
	include_build_dependencies: bool = False,
) -> DiscoveryResult:
	"""Breadth-first discovery of packages under `prefixes`, in order."""
	catalog = {} if catalog is None else catalog
	using_catalog = {} if using_catalog is None else using_catalog
	visited: set[Path] = set()
	root: PackageDescriptor | None = None

	for prefix in prefixes:
		queue: list[_QueueItem] = [_QueueItem(Path(prefix))]
		while queue:
			item = queue.pop(0)
			directory = item.directory
			name = item.alias or directory.name

			if not fs.is_directory(directory):
				continue
			canonical = fs.canonical(directory)
			if canonical in visited:
				continue
			visited.add(canonical)

			if name in catalog:
				continue
			if not fs.is_file(fs.join(directory, DESCRIPTOR_NAME)):
				logger.debug("no %s in %s", DESCRIPTOR_NAME, directory)
				continue

			try:
				descriptor = read_descriptor(fs, directory, fallback_name=directory.name)

				if descriptor.satellite and item.alias is None:
					satellite_id = descriptor.name or directory.name
					update_using_catalog(
						using_catalog,
						directory,
						satellite_id,
						descriptor,
						include_build_dependencies=include_build_dependencies,
					)
					logger.debug("registered satellite package '%s' at %s", satellite_id, directory)
					# Promotion may enqueue this directory again under an alias.
					visited.discard(canonical)
					continue

				read_using(
					using_catalog,
					fs.join(directory, USING_DIR),
					fs=fs,
					include_build_dependencies=include_build_dependencies,
				)

				name = item.alias or descriptor.name or directory.name
				if name in catalog:
					logger.debug("package '%s' at %s is shadowed by %s", name, directory, catalog[name].directory)
					continue
				descriptor.name = name
				descriptor.directory = directory
				catalog[name] = descriptor

				for dependency in descriptor.dependencies:
					if dependency in using_catalog and dependency not in catalog:
						queue.append(_QueueItem(using_catalog[dependency].directory, alias=dependency))

				for packages_dir in descriptor.packages:
					sub_root = fs.join(directory, packages_dir)
					if not fs.is_directory(sub_root):
						continue
					for child in fs.list(sub_root):
						child_dir = fs.join(sub_root, child)
						if fs.is_directory(child_dir):
							queue.append(_QueueItem(child_dir))

				if root is None:
					root = descriptor
			except (DescriptorError, OSError) as err:
				logger.error("Could not load package '%s'. %s", name, err)
				if strict:
					raise

	return DiscoveryResult(catalog=catalog, using_catalog=using_catalog, root=root)
