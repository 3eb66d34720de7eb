"""Tests for connectkit.manifest — YAML connector manifests."""

import pytest

from connectkit.errors import ManifestError
from connectkit.manifest import AuthType, discover_manifests, load_manifest

PETSTORE = """
name: petstore
description: Pet store demo API
icon: "🐾"
base_url: https://petstore.example.com/v2/
auth:
  type: bearer
  token_env: PETSTORE_TOKEN
paging:
  style: offset
  limit_param: limit
  offset_param: offset
entities:
  pets:
    endpoint: pets
    root: data.items
  pet:
    endpoint: pets/{pet_id}
    required: [pet_id]
"""


def test_load_manifest(tmp_path):
    path = tmp_path / "petstore.yaml"
    path.write_text(PETSTORE, encoding="utf-8")

    manifest = load_manifest(path)

    assert manifest.name == "petstore"
    assert manifest.auth.type == AuthType.BEARER
    assert manifest.paging.style == "offset"
    assert manifest.paging.options() == {"limit_param": "limit", "offset_param": "offset"}
    assert manifest.entities["pets"].root == "data.items"
    assert manifest.entities["pet"].required == ["pet_id"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(ManifestError):
        load_manifest(tmp_path / "nope.yaml")


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("name: [unclosed", encoding="utf-8")
    with pytest.raises(ManifestError):
        load_manifest(path)


def test_schema_violation_raises(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("name: bad\nentities: {}\n", encoding="utf-8")
    with pytest.raises(ManifestError) as exc_info:
        load_manifest(path)
    assert exc_info.value.path == str(path)


def test_non_mapping_raises(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ManifestError):
        load_manifest(path)


def test_discover_skips_invalid_and_other_files(tmp_path):
    (tmp_path / "petstore.yaml").write_text(PETSTORE, encoding="utf-8")
    (tmp_path / "broken.yml").write_text("name: [", encoding="utf-8")
    (tmp_path / "README.md").write_text("# manifests", encoding="utf-8")

    manifests = discover_manifests(tmp_path)

    assert [m.name for m in manifests] == ["petstore"]


def test_discover_missing_directory(tmp_path):
    assert discover_manifests(tmp_path / "missing") == []
