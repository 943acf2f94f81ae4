# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compilation collaborators.

A compiler turns module text into a factory: `compiler(text, path,
line_offset) -> factory`, and `factory(scope)` runs the module with the
entries of `scope` bound as free variables, returning its exported value.

Compile errors (`SyntaxError`, `json.JSONDecodeError`, ...) are never caught
here.
"""

from __future__ import annotations

import ast
import json
from pathlib import Path
from types import CodeType
from typing import Any, Callable, Mapping

Compiler = Callable[[str, Path, int], "ModuleFactory"]


class ModuleFactory:
	"""Base factory; `path` is kept for diagnostics."""

	def __init__(self, path: Path) -> None:
		self.path = path

	def __call__(self, scope: Mapping[str, Any] | None = None) -> Any:
		raise NotImplementedError

	def __repr__(self) -> str:
		return f"{type(self).__name__}({str(self.path)!r})"


class PythonModuleFactory(ModuleFactory):
	def __init__(self, code: CodeType, path: Path) -> None:
		super().__init__(path)
		self.code = code

	def __call__(self, scope: Mapping[str, Any] | None = None) -> Any:
		namespace: dict[str, Any] = {"__file__": str(self.path), "__name__": self.path.stem}
		namespace.update(scope or {})
		namespace.setdefault("exports", {})
		exec(self.code, namespace)
		return namespace["exports"]


class JsonModuleFactory(ModuleFactory):
	def __init__(self, data: Any, path: Path) -> None:
		super().__init__(path)
		self.data = data

	def __call__(self, scope: Mapping[str, Any] | None = None) -> Any:
		return self.data


def compile_module(text: str, path: Path, line_offset: int = 1) -> ModuleFactory:
	"""
	Compile Python module text.

	`line_offset` is the line number the first line of `text` has in `path`,
	so tracebacks stay aligned with the file on disk.
	"""
	tree = ast.parse(text, filename=str(path))
	if line_offset != 1:
		ast.increment_lineno(tree, line_offset - 1)
	return PythonModuleFactory(compile(tree, str(path), "exec"), Path(path))


def compile_json(text: str, path: Path, line_offset: int = 1) -> ModuleFactory:
	"""A JSON document is a module whose exported value is the decoded data."""
	return JsonModuleFactory(json.loads(text), Path(path))
