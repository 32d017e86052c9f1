"""
Tests for ripgrep executable resolution.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from todo_tree.scanner import locate
from todo_tree.scanner.locate import bundled_locations, exe_name, locate_ripgrep


@pytest.fixture
def fake_rg(tmp_path):
    path = tmp_path / "bin" / exe_name()
    path.parent.mkdir()
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def nothing_installed():
    with patch.object(locate, "bundled_locations", return_value=[]), \
         patch("shutil.which", return_value=None):
        yield


class TestLocateRipgrep:
    """Test suite for locating the scanner executable."""

    def test_configured_path_wins(self, fake_rg, tmp_path):
        bundled = tmp_path / "scripts" / exe_name()
        bundled.parent.mkdir()
        bundled.write_text("")

        with patch.object(locate, "bundled_locations", return_value=[bundled]):
            assert locate_ripgrep(fake_rg) == fake_rg
            assert locate_ripgrep(str(fake_rg)) == fake_rg

    def test_missing_configured_path_falls_back(self, fake_rg, tmp_path):
        with patch.object(locate, "bundled_locations", return_value=[fake_rg]):
            assert locate_ripgrep(tmp_path / "nope" / "rg") == fake_rg

    def test_bundled_location_before_path(self, fake_rg):
        with patch.object(locate, "bundled_locations", return_value=[fake_rg]), \
             patch("shutil.which", return_value="/elsewhere/rg") as which:
            assert locate_ripgrep() == fake_rg
            which.assert_not_called()

    def test_falls_back_to_path(self, fake_rg):
        with patch.object(locate, "bundled_locations", return_value=[]), \
             patch("shutil.which", return_value=str(fake_rg)):
            assert locate_ripgrep() == fake_rg

    def test_nothing_found(self, nothing_installed, tmp_path):
        assert locate_ripgrep() is None
        assert locate_ripgrep(tmp_path / "missing") is None

    def test_empty_configured_value_is_ignored(self, nothing_installed):
        assert locate_ripgrep("") is None

    def test_bundled_locations_use_scripts_dirs(self, tmp_path):
        with patch("sysconfig.get_path", return_value=str(tmp_path)):
            locations = bundled_locations()

        assert locations == [tmp_path / exe_name()]

    def test_exe_name_per_platform(self):
        with patch("platform.system", return_value="Windows"):
            assert exe_name() == "rg.exe"
        with patch("platform.system", return_value="Linux"):
            assert exe_name() == "rg"
