# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from layerload.errors import DependencyCycleError, ResourceNotFound
from layerload.loader.multi import MultiLoader
from layerload.loader.search_path import SearchPath
from layerload.packages.load import load_packages


def _write_file(path: Path, text: str) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


def _pkg(directory: Path, **descriptor: object) -> Path:
	_write_file(directory / "package.json", json.dumps(descriptor))
	return directory


@pytest.fixture
def app(tmp_path: Path) -> Path:
	app = _pkg(
		tmp_path / "app",
		name="app",
		dependencies=["util"],
		preload=["app/boot"],
		directories={"doc": "docs"},
	)
	_write_file(app / "lib" / "app" / "boot.py", "exports['booted'] = True\n")
	_write_file(app / "lib" / "shared.py", "exports['owner'] = 'app'\n")
	_write_file(app / "docs" / "readme.txt", "app docs")
	_write_file(app / "NOTICE", "app")
	util = _pkg(app / "packages" / "util", name="util", preload="util/init")
	_write_file(util / "lib" / "util" / "init.py", "")
	_write_file(util / "lib" / "shared.py", "exports['owner'] = 'util'\n")
	_write_file(util / "NOTICE", "util")
	return app


def test_pipeline_orders_installs_and_preloads(app: Path) -> None:
	path = SearchPath(["/bootstrap/lib"])
	loader = MultiLoader(path)
	state = load_packages([app], path, loader=loader)

	assert [d.name for d in state.order] == ["app", "util"]
	assert state.root is state.catalog["app"]
	assert list(path) == [app / "packages" / "util" / "lib", app / "lib"]
	assert state.preload_modules == ["util/init", "app/boot"]
	assert state.failed_preloads == []
	assert loader.is_loaded("util/init")
	assert loader.is_loaded("app/boot")


def test_leaf_dependency_shadows_dependent_module(app: Path) -> None:
	path = SearchPath()
	loader = MultiLoader(path)
	load_packages([app], path, loader=loader)
	assert loader.load("shared")({}) == {"owner": "util"}


def test_missing_preload_is_recorded_not_fatal(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root", preload=["root/missing", "root/present"])
	_write_file(root / "lib" / "root" / "present.py", "")
	path = SearchPath()
	loader = MultiLoader(path)
	state = load_packages([root], path, loader=loader)
	assert state.failed_preloads == ["root/missing"]
	assert loader.is_loaded("root/present")


def test_unresolved_dependency_is_dropped_before_sorting(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root")
	_pkg(root / "packages" / "broken", name="broken", dependencies=["nowhere"])
	state = load_packages([root], SearchPath())
	assert [d.name for d in state.order] == ["root"]
	assert "broken" not in state.catalog


def test_cycle_aborts_loading(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root", dependencies=["a"])
	_pkg(root / "packages" / "a", name="a", dependencies=["b"])
	_pkg(root / "packages" / "b", name="b", dependencies=["a"])
	path = SearchPath(["/untouched"])
	with pytest.raises(DependencyCycleError):
		load_packages([root], path)
	assert list(path) == [Path("/untouched")]


def test_promoted_satellite_is_searchable_and_resolvable(tmp_path: Path) -> None:
	root = _pkg(tmp_path / "root", name="root", dependencies=["acme/widgets"])
	widgets = _pkg(root / "using" / "acme" / "widgets", name="widgets", type="using")
	_write_file(widgets / "lib" / "button.py", "exports['kind'] = 'button'\n")

	path = SearchPath()
	loader = MultiLoader(path)
	state = load_packages([root], path, loader=loader)

	assert [d.name for d in state.order] == ["root", "acme/widgets"]
	assert path[0] == widgets / "lib"
	assert loader.using_catalog is state.using_catalog
	resolved, pkg = loader.resolve_pkg("button", "main", "acme/widgets")
	assert pkg == "acme/widgets"
	assert loader.load(resolved)({}) == {"kind": "button"}


def test_resources_are_ordered_and_remapped(app: Path) -> None:
	state = load_packages([app], SearchPath())
	assert state.resources("NOTICE") == [app / "NOTICE", app / "packages" / "util" / "NOTICE"]
	assert state.resource("doc", "readme.txt") == app / "docs" / "readme.txt"
	assert state.resource_if_exists("nothing.txt") is None


def test_absolute_resource_is_returned_as_is(app: Path) -> None:
	state = load_packages([app], SearchPath())
	notice = app / "NOTICE"
	assert state.resource(str(notice)) == notice
	assert state.resources(str(app / "absent")) == []


def test_missing_resource_raises(app: Path) -> None:
	state = load_packages([app], SearchPath())
	with pytest.raises(ResourceNotFound, match="Could not locate missing.txt in any package") as excinfo:
		state.resource("missing.txt")
	assert excinfo.value.path == "missing.txt"
