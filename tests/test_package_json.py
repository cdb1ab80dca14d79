from __future__ import annotations

import pytest

from emberpack.package_json import PackageJsonError, is_ember_app, load_package_json, parse_package_json

from conftest import write_package_json


def test_engines_are_exposed_as_ranges() -> None:
    pkg = parse_package_json('{"name": "app", "engines": {"node": "0.12.x", "npm": " 2.x "}}')
    assert pkg.name == "app"
    assert pkg.node_range == "0.12.x"
    assert pkg.npm_range == "2.x"


def test_missing_or_blank_engines_are_absent() -> None:
    assert parse_package_json("{}").node_range is None
    pkg = parse_package_json('{"engines": {"node": "", "npm": null}}')
    assert pkg.node_range is None
    assert pkg.npm_range is None


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2]",
        '{"engines": "0.12"}',
        '{"devDependencies": ["ember-cli"]}',
    ],
)
def test_invalid_documents_raise(text: str) -> None:
    with pytest.raises(PackageJsonError):
        parse_package_json(text)


def test_load_requires_package_json(tmp_path) -> None:
    with pytest.raises(PackageJsonError, match="package.json not found"):
        load_package_json(tmp_path)


def test_is_ember_app_from_dev_dependencies(tmp_path) -> None:
    write_package_json(tmp_path, devDependencies={"ember-cli": "1.13.8"})
    assert is_ember_app(tmp_path)


def test_is_ember_app_from_ember_cli_file(tmp_path) -> None:
    write_package_json(tmp_path, name="app")
    (tmp_path / ".ember-cli").write_text("{}", encoding="utf-8")
    assert is_ember_app(tmp_path)


def test_plain_node_app_is_not_detected(tmp_path) -> None:
    write_package_json(tmp_path, dependencies={"express": "4.x"})
    assert not is_ember_app(tmp_path)


def test_broken_package_json_is_not_detected(tmp_path) -> None:
    (tmp_path / "package.json").write_text("{", encoding="utf-8")
    assert not is_ember_app(tmp_path)
    assert not is_ember_app(tmp_path / "missing")
