import pytest

from openprocessing_downloader.utils import resolve_asset_url, sanitize_filename, unique_name


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        "raw",
        [
            "../../etc/passwd",
            "a\\b\\c.js",
            "tab\there\nnewline\x00null",
            '  what? <is> "this" | * :  ',
            "\x1f\x7f\x85",
        ],
    )
    def test_never_leaves_separators_or_control_characters(self, raw):
        result = sanitize_filename(raw)
        assert "/" not in result
        assert "\\" not in result
        assert all(ord(ch) >= 32 and not 0x7F <= ord(ch) <= 0x9F for ch in result)
        assert result == result.strip()

    def test_collapses_interior_whitespace(self):
        assert sanitize_filename("  my   fancy sketch.js  ") == "my_fancy_sketch.js"

    def test_plain_name_is_unchanged(self):
        assert sanitize_filename("sketch.js") == "sketch.js"

    def test_reserved_names_become_empty(self):
        assert sanitize_filename("..") == ""
        assert sanitize_filename("CON") == ""
        assert sanitize_filename("com1.txt") == ""

    def test_trailing_dots_are_removed(self):
        assert sanitize_filename("notes.txt...") == "notes.txt"

    def test_is_total(self):
        assert sanitize_filename(None) == ""
        assert sanitize_filename(42) == "42"

    def test_truncates_long_names(self):
        assert len(sanitize_filename("x" * 400).encode("utf-8")) == 255

    def test_truncation_keeps_extension(self):
        result = sanitize_filename("y" * 300 + ".png")
        assert result.endswith(".png")
        assert len(result.encode("utf-8")) == 255


class TestResolveAssetUrl:
    def test_empty_inputs_resolve_to_empty(self):
        assert resolve_asset_url("", "a.png") == ""
        assert resolve_asset_url("https://cdn.example.com/", "") == ""

    @pytest.mark.parametrize(
        "base,name",
        [
            ("https://cdn.example.com/files", "a.png"),
            ("https://cdn.example.com/files/", "a.png"),
            ("https://cdn.example.com/files", "/a.png"),
            ("https://cdn.example.com/files/", "/a.png"),
        ],
    )
    def test_absolute_base_joins_with_one_slash(self, base, name):
        assert resolve_asset_url(base, name) == "https://cdn.example.com/files/a.png"

    def test_host_relative_base_uses_platform_origin(self):
        assert (
            resolve_asset_url("/sketch/123/files/", "/data.json")
            == "https://openprocessing.org/sketch/123/files/data.json"
        )

    def test_other_shapes_are_unresolved(self, caplog):
        assert resolve_asset_url("ftp.example.com/files", "a.png") == ""
        assert "Failed to resolve asset URL" in caplog.text


class TestUniqueName:
    def test_suffixes_repeated_names(self):
        taken = set()
        assert unique_name("a.js", taken) == "a.js"
        assert unique_name("a.js", taken) == "a_2.js"
        assert unique_name("a.js", taken) == "a_3.js"
        assert taken == {"a.js", "a_2.js", "a_3.js"}

    def test_handles_names_without_extension(self):
        taken = {"README"}
        assert unique_name("README", taken) == "README_2"

    def test_suffix_fits_filesystem_limit(self):
        name = "z" * 252 + ".js"
        taken = {name}
        result = unique_name(name, taken)
        assert result.endswith("_2.js")
        assert len(result.encode("utf-8")) <= 255
        assert result in taken
