"""Tests for the fidolasen command."""

from pathlib import Path

import pytest

from fidolasen.cli import build_parser, main


class TestParser:
    def test_translate_defaults(self):
        args = build_parser().parse_args(["translate", "a.SAFE"])

        assert args.command == "translate"
        assert args.safe == ["a.SAFE"]
        assert args.res == "10m"
        assert args.format == "VRT"
        assert args.subdirs is None
        assert args.abs_paths is False

    def test_mask_requires_masks(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["mask", "a.tif"])

    def test_mask_type_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["mask", "a.tif", "--masks", "b.tif", "--mask-type", "x"])


class TestMain:
    def test_no_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_info(self, l2a_safe, capsys):
        main(["info", l2a_safe, "-k", "level", "-k", "tiles"])

        out = capsys.readouterr().out
        assert "level: 2A" in out
        assert "tiles: 32TQQ" in out

    def test_info_band_table(self, l1c_safe, capsys):
        main(["info", l1c_safe, "--key", "jp2list"])
        assert "Band files: 14" in capsys.readouterr().out

    def test_error_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["abs2rel", str(tmp_path / "missing.vrt")])
        assert exc_info.value.code == 1

    def test_abs2rel(self, tmp_path, capsys):
        (tmp_path / "data").mkdir()
        vrt = tmp_path / "out" / "a.vrt"
        vrt.parent.mkdir()
        source = tmp_path / "data" / "b.jp2"
        vrt.write_text(
            f'<VRTDataset>\n  <SourceFilename relativeToVRT="0">{source}</SourceFilename>\n'
            "</VRTDataset>\n"
        )

        main(["abs2rel", str(vrt)])

        assert "../data/b.jp2" in vrt.read_text()
        assert capsys.readouterr().out.strip() == str(vrt)

    def test_mask(self, sample_products, tmp_path, capsys):
        outdir = tmp_path / "masked"

        main(
            [
                "mask",
                *sample_products["BOA"],
                "--masks",
                *sample_products["SCL"],
                "--mask-type",
                "cloud_high_proba",
                "-o",
                str(outdir),
            ]
        )

        out = capsys.readouterr().out.split()
        assert out == [str(outdir / "S2A2A_20170603_022_32TQQ_BOA_10.tif")]
        assert Path(out[0]).exists()

    def test_warp_grid_requires_ref(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["warp", "in.tif", "out.tif", "--grid"])
        assert exc_info.value.code == 1

    def test_warp(self, monkeypatch, capsys):
        received = {}

        def fake_gdal_warp(src, dst, **kwargs):
            received.update(kwargs, src=src, dst=dst)

        monkeypatch.setattr("fidolasen.cli.warp.gdal_warp", fake_gdal_warp)

        main(["warp", "in.tif", "out.tif", "--t-srs", "EPSG:32633", "--tr", "20", "20"])

        assert received["src"] == "in.tif"
        assert received["t_srs"] == "EPSG:32633"
        assert received["tr"] == [20.0, 20.0]
        assert received["mask"] is None
