# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LayerloadError(Exception):
	"""
	A structured, serializable error for package discovery and module loading.

	Every failure that crosses a component boundary carries a stable
	`reason_code` so the CLI can report it in machine-readable form.
	"""

	message: str
	reason_code: str = "layerload-error"
	package: str | None = None
	module_id: str | None = None
	path: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"package": self.package,
			"module_id": self.module_id,
			"path": self.path,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.package:
			parts.append(f"package={self.package}")
		if self.module_id:
			parts.append(f"module_id={self.module_id}")
		if self.path:
			parts.append(f"path={self.path}")
		return " ".join(parts)


@dataclass(frozen=True)
class ModuleNotFound(LayerloadError):
	reason_code: str = "module-not-found"


@dataclass(frozen=True)
class ResourceNotFound(LayerloadError):
	reason_code: str = "resource-not-found"


@dataclass(frozen=True)
class DescriptorError(LayerloadError):
	"""A package descriptor document is unreadable or has an unrecognized shape."""

	reason_code: str = "descriptor-invalid"


@dataclass(frozen=True)
class UnknownPackageError(LayerloadError):
	reason_code: str = "unknown-package"


@dataclass(frozen=True)
class DependencyCycleError(LayerloadError):
	"""
	Raised by the sorter on a back edge.

	`cycle` is the path of discovered-but-unfinished packages followed by the
	dependency that closed the loop.
	"""

	reason_code: str = "dependency-cycle"
	cycle: tuple[str, ...] = ()

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out["cycle"] = list(self.cycle)
		return out
