"""Tests for module descriptor parsing and discovery."""

from pathlib import Path

import pytest

from conftest import write, write_json
from roost.errors import ConfigurationError
from roost.modules.descriptor import discover_descriptors, parse_descriptor, read_descriptor


class TestParseDescriptor:
    def test_default_dirs(self) -> None:
        root = Path("/srv/modules/shop")
        descriptor = parse_descriptor("shop", root, {"path": "/shop/"})
        assert descriptor.prefix == "/shop/"
        assert descriptor.dirs.models == root / "models"
        assert descriptor.dirs.static == root / "static"
        assert descriptor.dirs.views == root / "views"

    def test_dir_overrides_are_relative_to_root(self) -> None:
        root = Path("/srv/modules/shop")
        descriptor = parse_descriptor("shop", root, {"path": "/", "dirs": {"views": "templates"}})
        assert descriptor.dirs.views == root / "templates"
        assert descriptor.dirs.models == root / "models"

    @pytest.mark.parametrize("prefix", [None, "", "shop/", "/shop", 7])
    def test_bad_path_is_rejected(self, prefix) -> None:
        with pytest.raises(ConfigurationError, match="'path'"):
            parse_descriptor("shop", Path("/m"), {"path": prefix})

    def test_non_object_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="JSON object"):
            parse_descriptor("shop", Path("/m"), ["/shop/"])

    def test_bad_dirs_are_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_descriptor("shop", Path("/m"), {"path": "/", "dirs": ["views"]})
        with pytest.raises(ConfigurationError, match="dirs.views"):
            parse_descriptor("shop", Path("/m"), {"path": "/", "dirs": {"views": 1}})


class TestReadDescriptor:
    def test_no_file_is_none(self, tmp_path) -> None:
        assert read_descriptor(tmp_path) is None

    def test_invalid_json_is_configuration_error(self, tmp_path) -> None:
        write(tmp_path / "module.json", "{")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            read_descriptor(tmp_path)


class TestDiscoverDescriptors:
    def test_sorted_and_skips_plain_dirs(self, tmp_path) -> None:
        write_json(tmp_path / "zeta" / "module.json", {"path": "/z/"})
        write_json(tmp_path / "alpha" / "module.json", {"path": "/a/"})
        write_json(tmp_path / ".hidden" / "module.json", {"path": "/h/"})
        (tmp_path / "plain").mkdir()

        names = [d.name for d in discover_descriptors(tmp_path)]
        assert names == ["alpha", "zeta"]

    def test_missing_directory(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            discover_descriptors(tmp_path / "nope")
