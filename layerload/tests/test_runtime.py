# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from layerload.config import LayerloadOptions
from layerload.errors import ModuleNotFound
from layerload.runtime import bootstrap, enclosing_package_prefixes, initial_paths


def _write_file(path: Path, text: str) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


def _pkg(directory: Path, **descriptor: object) -> Path:
	_write_file(directory / "package.json", json.dumps(descriptor))
	return directory


def test_initial_paths_put_engine_dirs_first() -> None:
	assert initial_paths([Path("/p"), Path("/q")], ["cpython"]) == [
		Path("/p/engines/cpython/lib"),
		Path("/p/lib"),
		Path("/q/engines/cpython/lib"),
		Path("/q/lib"),
	]


def test_bootstrap_replaces_initial_path_with_synthesized_one(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root", dependencies=["dep"])
	dep = _pkg(root / "packages" / "dep", name="dep")
	_write_file(dep / "lib" / "helper.py", "exports['from'] = 'dep'\n")
	_write_file(root / "lib" / "settings.json", '{"debug": false}')

	runtime = bootstrap(LayerloadOptions(prefixes=(root,)))
	assert list(runtime.search_path) == [dep / "lib", root / "lib"]
	assert runtime.find("helper") == dep / "lib" / "helper.py"
	assert runtime.load("helper")({}) == {"from": "dep"}
	assert runtime.load("settings")() == {"debug": False}


def test_includes_are_prepended_in_order(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root")
	runtime = bootstrap(LayerloadOptions(prefixes=(root,)), includes=[tmp_path / "i1", tmp_path / "i2"])
	assert list(runtime.search_path) == [tmp_path / "i1", tmp_path / "i2", root / "lib"]


def test_no_packages_keeps_initial_path(tmp_path: Path) -> None:
	opts = LayerloadOptions(
		prefixes=(tmp_path,),
		engines=("default",),
		extra_paths=(tmp_path / "extra",),
		no_packages=True,
	)
	runtime = bootstrap(opts)
	assert list(runtime.search_path) == [
		tmp_path / "engines" / "default" / "lib",
		tmp_path / "lib",
		tmp_path / "extra",
	]
	assert runtime.packages.order == []
	with pytest.raises(ModuleNotFound):
		runtime.find("anything")


def test_program_enclosing_packages_become_prefixes(tmp_path: Path) -> None:
	outer = _pkg(tmp_path / "outer", name="outer")
	inner = _pkg(outer / "tools" / "inner", name="inner")
	program = _write_file(inner / "bin" / "run.py", "")
	assert enclosing_package_prefixes(program) == [inner.resolve(), outer.resolve()]

	runtime = bootstrap(LayerloadOptions(program=program))
	assert runtime.packages.root is not None
	assert runtime.packages.root.name == "inner"
	assert {d.name for d in runtime.packages.order} == {"inner", "outer"}


def test_package_home_shadows_prefixes(tmp_path: Path) -> None:
	home = _pkg(tmp_path / "home", name="home")
	_pkg(home / "packages" / "shared", name="shared", version="2.0")
	prefix = _pkg(tmp_path / "prefix", name="prefix")
	_pkg(prefix / "packages" / "shared", name="shared", version="1.0")
	runtime = bootstrap(LayerloadOptions(prefixes=(prefix,), package_home=home))
	assert runtime.packages.catalog["shared"].version == ("2", "0")
	assert runtime.packages.root is runtime.packages.catalog["home"]


def test_bin_path_lists_existing_bin_directories(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root", dependencies=["dep"])
	dep = _pkg(root / "packages" / "dep", name="dep")
	(dep / "bin").mkdir()
	runtime = bootstrap(LayerloadOptions(prefixes=(root,)))
	assert runtime.bin_path() == [dep / "bin"]
