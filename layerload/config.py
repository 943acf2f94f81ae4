# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Runtime configuration.

Options are a frozen dataclass; the environment layer is parsed once at the
boundary (`from_env`) so the rest of the system never inspects `os.environ`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

DEFAULT_ENGINES: tuple[str, ...] = ("default",)
DEFAULT_EXTENSIONS: tuple[str, ...] = ("", ".py")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"", "0", "false", "no", "off"}


def _env_bool(environ: Mapping[str, str], key: str) -> bool:
	raw = environ.get(key, "").strip().lower()
	if raw in _TRUE:
		return True
	if raw in _FALSE:
		return False
	raise ValueError(f"{key} must be a boolean (1/0, true/false, yes/no), got: {raw!r}")


def _env_list(environ: Mapping[str, str], key: str) -> tuple[str, ...]:
	return tuple(p for p in environ.get(key, "").split(os.pathsep) if p)


@dataclass(frozen=True)
class LayerloadOptions:
	prefixes: tuple[Path, ...] = ()
	packages: tuple[Path, ...] = ()  # extra package directories searched before prefixes
	engines: tuple[str, ...] = DEFAULT_ENGINES
	extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
	extra_paths: tuple[Path, ...] = ()
	package_home: Path | None = None
	program: Path | None = None
	strict: bool = False
	verbose: bool = False
	include_build_dependencies: bool = False
	no_packages: bool = False

	@classmethod
	def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> "LayerloadOptions":
		"""
		Build options from `LAYERLOAD_*` environment variables.

		List variables are separated by `os.pathsep`. Explicit keyword
		overrides win over the environment.
		"""
		env = os.environ if environ is None else environ
		engines = _env_list(env, "LAYERLOAD_ENGINES") or DEFAULT_ENGINES
		home = env.get("LAYERLOAD_PACKAGE_HOME") or None
		opts = cls(
			prefixes=tuple(Path(p) for p in _env_list(env, "LAYERLOAD_PREFIXES")),
			engines=engines,
			extra_paths=tuple(Path(p) for p in _env_list(env, "LAYERLOAD_PATH")),
			package_home=Path(home) if home else None,
			strict=_env_bool(env, "LAYERLOAD_STRICT"),
			verbose=_env_bool(env, "LAYERLOAD_VERBOSE"),
		)
		if overrides:
			opts = replace(opts, **overrides)
		return opts
