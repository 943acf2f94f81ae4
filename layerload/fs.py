# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Filesystem collaborator.

Discovery and loading only ever touch the disk through a `FileSystem`. The
protocol covers existence and type checks, listing, text reads and a small
path algebra; modification times are optional. `LocalFileSystem` is the default,
backed by `pathlib`.

None of these calls are retried; a failing call raises `OSError` to the
caller.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, Union

PathLike = Union[str, Path]


class FileSystem(Protocol):
	def exists(self, path: PathLike) -> bool: ...

	def is_file(self, path: PathLike) -> bool: ...

	def is_directory(self, path: PathLike) -> bool: ...

	def list(self, path: PathLike) -> list[str]: ...

	def read(self, path: PathLike, *, encoding: str = "utf-8") -> str: ...

	def canonical(self, path: PathLike) -> Path: ...

	def join(self, *parts: PathLike) -> Path: ...

	def split(self, path: PathLike) -> list[str]: ...

	def absolute(self, path: PathLike) -> Path: ...

	def relative(self, source: PathLike, target: PathLike) -> Path: ...

	def is_absolute(self, path: PathLike) -> bool: ...


class LocalFileSystem:
	"""`FileSystem` over the host disk. Also exposes `last_modified`."""

	def exists(self, path: PathLike) -> bool:
		return Path(path).exists()

	def is_file(self, path: PathLike) -> bool:
		return Path(path).is_file()

	def is_directory(self, path: PathLike) -> bool:
		return Path(path).is_dir()

	def list(self, path: PathLike) -> list[str]:
		# Entry names only; os.listdir never yields "." or "..".
		return sorted(os.listdir(path))

	def read(self, path: PathLike, *, encoding: str = "utf-8") -> str:
		return Path(path).read_text(encoding=encoding)

	def last_modified(self, path: PathLike) -> int:
		return Path(path).stat().st_mtime_ns

	def canonical(self, path: PathLike) -> Path:
		return Path(path).resolve()

	def join(self, *parts: PathLike) -> Path:
		if not parts:
			return Path("")
		return Path(parts[0]).joinpath(*parts[1:])

	def split(self, path: PathLike) -> list[str]:
		return list(Path(path).parts)

	def absolute(self, path: PathLike) -> Path:
		return Path(os.path.abspath(path))

	def relative(self, source: PathLike, target: PathLike) -> Path:
		return Path(os.path.relpath(target, source))

	def is_absolute(self, path: PathLike) -> bool:
		return Path(path).is_absolute()


LOCAL_FS = LocalFileSystem()
