# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Module loading: resolve ids against a shared search path, compile, cache.
"""

from __future__ import annotations

__all__ = [
	"compile",
	"loader",
	"multi",
	"search_path",
]
