"""Tests for timestamp-based staleness decisions."""

from scanner.staleness import cache_is_fresh, file_mtime, is_newer, needs_regeneration


class TestCacheFreshness:
    """Cache validity requires a strictly newer cache."""

    def test_newer_cache_is_fresh(self):
        assert cache_is_fresh(200, 100)

    def test_equal_mtime_is_stale(self):
        assert not cache_is_fresh(100, 100)

    def test_older_cache_is_stale(self):
        assert not cache_is_fresh(50, 100)

    def test_missing_cache_is_stale(self):
        assert not cache_is_fresh(None, 100)

    def test_is_newer_with_missing_reference(self):
        assert is_newer(1, None)
        assert not is_newer(None, None)


class TestNeedsRegeneration:
    """Per-package regeneration decision."""

    def test_missing_output_forces_regeneration(self):
        assert needs_regeneration(None, 100, 50)

    def test_missing_cache_forces_regeneration(self):
        assert needs_regeneration(300, None, 50)

    def test_fresh_output_is_kept(self):
        assert not needs_regeneration(300, 200, 100)

    def test_output_older_than_cache(self):
        assert needs_regeneration(150, 200, 100)

    def test_output_older_than_manifest(self):
        assert needs_regeneration(300, 200, 400)

    def test_force_overrides_timestamps(self):
        assert needs_regeneration(300, 200, 100, force=True)


class TestFileMtime:
    def test_existing_file(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("x", encoding="utf-8")
        assert isinstance(file_mtime(str(path)), int)

    def test_missing_file(self, tmp_path):
        assert file_mtime(str(tmp_path / "missing")) is None
