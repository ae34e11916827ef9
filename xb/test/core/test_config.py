"""Tests for xb.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from xb.core.config import (
    BuildConfig,
    Config,
    ConfigError,
    ManifestConfig,
    AvailabilityConfig,
    load_config,
)
from xb.core.result import Err, Ok


class TestDefaults:
    """A project without xb.toml works with the defaults."""

    def test_manifests(self) -> None:
        config = Config()
        assert config.manifests == (
            ManifestConfig(path="quiche/Cargo.toml"),
            ManifestConfig(path="Cargo.toml", kind="dependency", name="quiche"),
        )

    def test_build(self) -> None:
        build = BuildConfig()
        assert build.features == ("ffi", "qlog", "sfv")
        assert build.default_features == ("ffi",)
        assert build.toolchain == "cargo"

    def test_availability_defaults(self) -> None:
        availability = AvailabilityConfig()
        assert availability.container == ("docker", "info")
        assert availability.cross == ("cross", "--version")

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.build = BuildConfig()  # type: ignore[misc]


class TestFromDict:
    def test_empty_dict_gives_defaults(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_project_and_release(self) -> None:
        config = Config.from_dict(
            {
                "project": {"name": "demo", "repo": "acme/demo"},
                "release": {"releases_dir": "out", "tag_prefix": ""},
            }
        )
        assert config.project.name == "demo"
        assert config.project.repo == "acme/demo"
        assert config.release.releases_dir == "out"
        assert config.release.dist_dir == "dist"
        assert config.release.tag_prefix == ""

    def test_manifests(self) -> None:
        config = Config.from_dict(
            {
                "version": {
                    "manifests": [
                        {"path": "crate/Cargo.toml"},
                        {"path": "Cargo.toml", "kind": "dependency", "name": "crate"},
                    ]
                }
            }
        )
        assert config.manifests == (
            ManifestConfig(path="crate/Cargo.toml"),
            ManifestConfig(path="Cargo.toml", kind="dependency", name="crate"),
        )

    def test_dependency_manifest_needs_name(self) -> None:
        with pytest.raises(ValueError, match="needs a name"):
            Config.from_dict({"version": {"manifests": [{"path": "Cargo.toml", "kind": "dependency"}]}})

    def test_unknown_manifest_kind(self) -> None:
        with pytest.raises(ValueError, match="unknown manifest kind"):
            Config.from_dict({"version": {"manifests": [{"path": "x", "kind": "workspace"}]}})

    def test_features_override(self) -> None:
        config = Config.from_dict({"build": {"features": ["ffi", "boringssl-vendored"]}})
        assert config.build.features == ("ffi", "boringssl-vendored")
        assert config.build.default_features == ("ffi",)

    def test_default_features_must_be_known(self) -> None:
        with pytest.raises(ValueError, match="not in build.features"):
            Config.from_dict({"build": {"features": ["ffi"], "default_features": ["qlog"]}})

    def test_default_features_dropped_when_feature_removed(self) -> None:
        config = Config.from_dict({"build": {"features": ["qlog"]}})
        assert config.build.default_features == ()

    def test_availability_command_as_string_or_list(self) -> None:
        config = Config.from_dict(
            {"availability": {"container": "podman info --format json", "cross": ["cross", "-V"]}}
        )
        assert config.availability.container == ("podman", "info", "--format", "json")
        assert config.availability.cross == ("cross", "-V")


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "xb.toml")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "xb.toml"
        path.write_text("[project\nname = 1", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "xb.toml"
        path.write_text('[build]\nfeatures = ["ffi"]\ndefault_features = ["nope"]\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message

    def test_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "xb.toml"
        path.write_text('[project]\nname = "demo"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.project.name == "demo"
