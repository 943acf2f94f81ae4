# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
layerload: package discovery and layered module resolution.

Subpackages:
  packages: descriptors, discovery, verification, ordering, path synthesis
  loader:   search path, module loader, multi-format dispatcher

The CLI entrypoint is `layerload.cli:main`.
"""

__all__ = ["packages", "loader"]
