# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package tooling.

A package is a directory holding a `package.json` descriptor. This package
discovers packages across root prefixes, prunes the ones with unmet
dependencies, orders them so dependents precede their dependencies, and turns
that order into a module search path.
"""

from __future__ import annotations

__all__ = [
	"author",
	"catalog",
	"descriptor",
	"load",
	"sort",
	"synthesize",
	"verify",
]
