"""
Tests for L4T release parsing, URL construction and local version suffixes.
"""

import pytest

from jetson_kernel.errors import VersionParseError
from jetson_kernel.lib.release import (
    VersionIdentifier,
    build_bundle,
    local_version_suffix,
    parse_release_descriptor,
    read_version,
    source_url,
)
from jetson_kernel.settings import DEFAULT_BASE_URL

from conftest import RELEASE_TEXT


class TestParseReleaseDescriptor:
    def test_jetson_36(self):
        v = parse_release_descriptor(RELEASE_TEXT)
        assert v == VersionIdentifier(major="36", minor="4.3")

    def test_multi_part_revision(self):
        v = parse_release_descriptor("# R35 (release), REVISION: 5.0.1, GCID: 1\n")
        assert (v.major, v.minor) == ("35", "5.0.1")

    def test_missing_major(self):
        with pytest.raises(VersionParseError, match="major=<missing>"):
            parse_release_descriptor("REVISION: 4.3\n")

    def test_missing_minor(self):
        with pytest.raises(VersionParseError, match="minor=<missing>"):
            parse_release_descriptor("# R36 (release), GCID: 1\n")

    def test_empty_revision(self):
        with pytest.raises(VersionParseError):
            parse_release_descriptor("# R36 (release), REVISION: , GCID: 1\n")

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(VersionParseError, match="Cannot read"):
            read_version(tmp_path / "missing")

    def test_error_names_file(self, tmp_path):
        p = tmp_path / "nv_tegra_release"
        p.write_text("garbage\n")
        with pytest.raises(VersionParseError, match=str(p)):
            read_version(p)


class TestSourceUrl:
    def test_default_layout(self):
        url = source_url(VersionIdentifier("36", "4.3"), base_url=DEFAULT_BASE_URL, file_name="public_sources.tbz2")
        assert url == "https://developer.nvidia.com/embedded/l4t/r36_release_v4.3/sources/public_sources.tbz2"

    @pytest.mark.parametrize("major,minor", [("32", "7.1"), ("35", "5.0"), ("36", "4.3")])
    def test_deterministic(self, major, minor):
        v = VersionIdentifier(major, minor)
        first = source_url(v, base_url=DEFAULT_BASE_URL, file_name="x.tbz2")
        second = source_url(VersionIdentifier(major, minor), base_url=DEFAULT_BASE_URL, file_name="x.tbz2")
        assert first == second
        assert f"r{major}_release_v{minor}" in first

    def test_bundle_with_sidecar(self):
        b = build_bundle(
            VersionIdentifier("36", "4.3"),
            base_url=DEFAULT_BASE_URL,
            file_name="public_sources.tbz2",
            checksum_suffix=".sha1sum",
        )
        assert b.checksum_url == b.url + ".sha1sum"
        assert b.checksum_file_name == "public_sources.tbz2.sha1sum"

    def test_bundle_without_sidecar(self):
        b = build_bundle(VersionIdentifier("36", "4.3"), base_url=DEFAULT_BASE_URL, file_name="public_sources.tbz2")
        assert b.checksum_url is None
        assert b.checksum_file_name is None


class TestLocalVersionSuffix:
    def test_tegra(self):
        assert local_version_suffix("5.15.148-tegra") == "-tegra"

    def test_keeps_everything_after_first_hyphen(self):
        assert local_version_suffix("4.9.253-tegra-custom") == "-tegra-custom"

    def test_no_hyphen(self):
        assert local_version_suffix("6.1.0") == ""
