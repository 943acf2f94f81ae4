# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import logging

from layerload.packages.catalog import Catalog

logger = logging.getLogger(__name__)


def verify_catalog(catalog: Catalog) -> list[str]:
	"""
	Drop every package whose dependencies are not transitively satisfied.

	Removal cascades: a package that depends on a dropped package is dropped
	on a later pass. Runs to a fixed point and returns the dropped names in
	removal order. Cycles among present packages are left for the sorter.
	"""
	dropped: list[str] = []
	changed = True
	while changed:
		changed = False
		for name in list(catalog):
			descriptor = catalog[name]
			missing = next((dep for dep in descriptor.dependencies if dep not in catalog), None)
			if missing is None:
				continue
			logger.debug("Threw away package %s because it depends on %s.", name, missing)
			del catalog[name]
			dropped.append(name)
			changed = True
	return dropped
