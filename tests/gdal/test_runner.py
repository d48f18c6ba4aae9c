"""Tests for GDAL command execution."""

import subprocess

import pytest

from fidolasen.config import configure
from fidolasen.core.exceptions import GDALError
from fidolasen.gdal import runner
from fidolasen.gdal.runner import check_gdal, find_utility, gdal_args, gdalwarp, run_gdal


class TestGdalArgs:
    """Test translation of keyword options into flags"""

    def test_values_and_flags(self):
        args = gdal_args(of="GTiff", tr=(10.0, 10.0), overwrite=True)
        assert args == ["-of", "GTiff", "-tr", "10", "10", "-overwrite"]

    def test_repeated_flags(self):
        args = gdal_args(co=["COMPRESS=DEFLATE", "TILED=YES"])
        assert args == ["-co", "COMPRESS=DEFLATE", "-co", "TILED=YES"]

    def test_omitted_options(self):
        assert gdal_args(cutline=None, separate=False) == []

    def test_float_values(self):
        assert gdal_args(te=[0.5, 1.0, 2.25, 3.0]) == ["-te", "0.5", "1", "2.25", "3"]


class TestFindUtility:
    def test_gdal_dir_setting(self, tmp_path):
        tool = tmp_path / "gdalwarp"
        tool.write_text("#!/bin/sh\n")
        tool.chmod(0o755)
        configure(gdal_dir=str(tmp_path))

        assert find_utility("gdalwarp") == str(tool)
        assert find_utility("gdal_translate") is None

    def test_check_gdal_missing(self, monkeypatch, caplog):
        monkeypatch.setattr(runner, "find_utility", lambda tool: None)

        with pytest.raises(GDALError, match="gdalbuildvrt"):
            check_gdal(abort=True)
        assert check_gdal(abort=False) is False
        assert "GDAL utilities not found" in caplog.text

    def test_check_gdal_found(self, monkeypatch):
        monkeypatch.setattr(runner, "find_utility", lambda tool: f"/usr/bin/{tool}")
        assert check_gdal() is True


class TestRunGdal:
    """Test execution of GDAL utilities"""

    @pytest.fixture
    def fake_run(self, monkeypatch):
        monkeypatch.setattr(runner, "find_utility", lambda tool: f"/usr/bin/{tool}")
        commands = []

        def _run(command, returncode=0, stderr=""):
            commands.append(command)
            return subprocess.CompletedProcess(command, returncode, stdout="", stderr=stderr)

        def install(returncode=0, stderr=""):
            monkeypatch.setattr(
                runner.subprocess,
                "run",
                lambda command, **kwargs: _run(command, returncode, stderr),
            )
            return commands

        return install

    def test_command_line(self, fake_run):
        commands = fake_run()

        gdalwarp("in.tif", "out.tif", t_srs="EPSG:32632", overwrite=True)

        assert commands == [
            ["/usr/bin/gdalwarp", "-t_srs", "EPSG:32632", "-overwrite", "in.tif", "out.tif"]
        ]

    def test_failure_raises(self, fake_run):
        fake_run(returncode=1, stderr="ERROR 4: in.tif: No such file or directory")

        with pytest.raises(GDALError, match="No such file") as exc_info:
            run_gdal("gdal_translate", ["in.tif", "out.tif"])

        assert exc_info.value.command[0] == "/usr/bin/gdal_translate"
        assert "ERROR 4" in exc_info.value.stderr

    def test_missing_utility(self, monkeypatch):
        monkeypatch.setattr(runner, "find_utility", lambda tool: None)
        with pytest.raises(GDALError, match="not found"):
            run_gdal("gdalwarp", ["in.tif", "out.tif"])
