# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Sequence, overload


class SearchPath(Sequence[Path]):
	"""
	Ordered directories consulted to resolve top-level module ids.

	Earlier entries win. Loaders and the dispatcher hold a reference to one
	shared instance, so the contents are replaced in place and the object is
	never rebound.
	"""

	def __init__(self, paths: Iterable[Path | str] = ()) -> None:
		self._paths: list[Path] = [Path(p) for p in paths]

	@overload
	def __getitem__(self, index: int) -> Path: ...

	@overload
	def __getitem__(self, index: slice) -> list[Path]: ...

	def __getitem__(self, index):
		return self._paths[index]

	def __len__(self) -> int:
		return len(self._paths)

	def __iter__(self) -> Iterator[Path]:
		return iter(list(self._paths))

	def __repr__(self) -> str:
		return f"SearchPath({[str(p) for p in self._paths]!r})"

	def __eq__(self, other: object) -> bool:
		if isinstance(other, SearchPath):
			return self._paths == other._paths
		if isinstance(other, (list, tuple)):
			return self._paths == [Path(p) for p in other]
		return NotImplemented

	def replace(self, paths: Iterable[Path | str]) -> None:
		"""Clear, then insert `paths`; the identity of this object is preserved."""
		new_paths = [Path(p) for p in paths]
		self._paths.clear()
		self._paths.extend(new_paths)

	def include(self, path: Path | str) -> None:
		"""Put `path` ahead of every other entry (the `--include` option)."""
		self._paths.insert(0, Path(path))

	def extend(self, paths: Iterable[Path | str]) -> None:
		self._paths.extend(Path(p) for p in paths)
