# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from layerload.config import LayerloadOptions
from layerload.errors import LayerloadError
from layerload.runtime import Runtime, bootstrap


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="layerload", description="Package discovery and layered module resolution")
	p.add_argument(
		"--prefix",
		dest="prefixes",
		action="append",
		type=Path,
		default=None,
		help="Root prefix to search for packages (repeatable; earlier prefixes shadow later ones)",
	)
	p.add_argument(
		"--package",
		dest="packages",
		action="append",
		type=Path,
		default=None,
		help="Extra package directory searched before the prefixes (repeatable)",
	)
	p.add_argument("--engine", dest="engines", action="append", default=None, help="Active engine (repeatable)")
	p.add_argument(
		"-I",
		"--include",
		dest="includes",
		action="append",
		type=Path,
		default=None,
		help="Directory prepended to the synthesized search path (repeatable)",
	)
	p.add_argument("--program", type=Path, default=None, help="Program path; enclosing packages become prefixes")
	p.add_argument("--strict", action="store_true", help="Abort on descriptor and preload errors")
	p.add_argument("--no-packages", action="store_true", help="Skip package discovery")
	p.add_argument(
		"--include-build-dependencies",
		action="store_true",
		help="Merge build.using aliases into the using-catalog",
	)
	p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
	p.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
	sub = p.add_subparsers(dest="cmd", required=True)

	sub.add_parser("order", help="List packages from most to least dependent")
	sub.add_parser("path", help="Print the synthesized module search path")
	sub.add_parser("catalog", help="Describe every cataloged package")
	sub.add_parser("bin-path", help="Print existing bin directories of the ordered packages")
	find = sub.add_parser("find", help="Resolve a module id to a file")
	find.add_argument("module_id")
	resource = sub.add_parser("resource", help="Locate a resource across packages")
	resource.add_argument("terms", nargs="+")
	return p


def _options(args: argparse.Namespace) -> LayerloadOptions:
	opts = LayerloadOptions.from_env()
	changes: dict[str, Any] = {}
	if args.prefixes:
		changes["prefixes"] = tuple(args.prefixes)
	if args.packages:
		changes["packages"] = tuple(args.packages)
	if args.engines:
		changes["engines"] = tuple(args.engines)
	if args.program is not None:
		changes["program"] = args.program
	if args.strict:
		changes["strict"] = True
	if args.verbose:
		changes["verbose"] = True
	if args.no_packages:
		changes["no_packages"] = True
	if args.include_build_dependencies:
		changes["include_build_dependencies"] = True
	return replace(opts, **changes)


def _emit(obj: Any, *, as_json: bool) -> None:
	if as_json:
		print(json.dumps(obj, sort_keys=True, separators=(",", ":")))
		return
	if isinstance(obj, list):
		for item in obj:
			print(item if not isinstance(item, dict) else json.dumps(item, sort_keys=True))
	else:
		print(obj)


def _run(runtime: Runtime, args: argparse.Namespace) -> Any:
	if args.cmd == "order":
		return [d.name for d in runtime.packages.order]
	if args.cmd == "path":
		return [str(p) for p in runtime.search_path]
	if args.cmd == "bin-path":
		paths = [str(p) for p in runtime.bin_path()]
		return paths if args.json else os.pathsep.join(paths)
	if args.cmd == "catalog":
		return [
			{
				"name": d.name,
				"version": ".".join(str(c) for c in d.version),
				"dependencies": list(d.dependencies),
				"directory": str(d.directory),
			}
			for d in runtime.packages.catalog.values()
		]
	if args.cmd == "find":
		return str(runtime.find(args.module_id))
	if args.cmd == "resource":
		return str(runtime.packages.resource(*args.terms))
	raise AssertionError("unreachable")


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	try:
		opts = _options(args)
	except ValueError as err:
		p.error(str(err))
		return 2
	logging.basicConfig(
		level=logging.DEBUG if opts.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)

	try:
		runtime = bootstrap(opts, includes=list(args.includes or []))
		result = _run(runtime, args)
	except LayerloadError as err:
		if args.json:
			print(json.dumps({"ok": False, "error": err.to_dict()}, sort_keys=True, separators=(",", ":")))
		else:
			print(err.format_human(), file=sys.stderr)
		return 2
	_emit(result, as_json=bool(args.json))
	return 0
