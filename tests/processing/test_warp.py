"""Tests for clipping, reprojection and grid alignment of rasters."""

import math

import numpy as np
import pytest

from fidolasen.core.exceptions import FormatError, ValidationError
from fidolasen.grid.alignment import BBox
from fidolasen.processing.warp import SOURCE_EXTENT, gdal_warp, gdalwarp_grid

WARP = "fidolasen.processing.warp"


@pytest.fixture
def calls(gdal_calls):
    gdal_calls.patch(WARP, "gdal_translate", "gdalwarp")
    return gdal_calls


@pytest.fixture
def src(tmp_path, write_raster):
    """10x10 pixels of 10 m, lower-left corner (1005, 1003)"""
    return write_raster(
        tmp_path / "src.tif",
        np.ones((10, 10), dtype=np.uint16),
        lower_left=(1005.0, 1003.0),
        res=10.0,
    )


@pytest.fixture
def ref(tmp_path, write_raster):
    """6x6 pixels of 20 m, lower-left corner (1000, 1000)"""
    return write_raster(
        tmp_path / "ref.tif",
        np.zeros((6, 6), dtype=np.uint8),
        lower_left=(1000.0, 1000.0),
        res=20.0,
    )


class TestGdalWarpSameCRS:
    """Outputs in the source coordinate system are produced with gdal_translate"""

    def test_no_ref_no_mask(self, calls, src, tmp_path):
        dst = str(tmp_path / "out.tif")

        result = gdal_warp(src, dst)

        assert result == [dst]
        assert len(calls.of("gdalwarp")) == 0
        tool, args, options = calls[0]
        assert tool == "gdal_translate"
        assert args == (src, dst)
        assert options["projwin"] == [1005.0, 1103.0, 1105.0, 1003.0]
        assert options["tr"] == (10.0, 10.0)
        assert options["of"] == "GTiff"
        assert options["r"] == "nearest"

    def test_ref_with_source_extent(self, calls, src, ref, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", ref=ref, mask=SOURCE_EXTENT)

        options = calls.of("gdal_translate")[0][2]
        assert options["projwin"] == [1000.0, 1120.0, 1120.0, 1000.0]
        assert options["tr"] == (20.0, 20.0)

    def test_ref_without_mask_uses_ref_extent(self, calls, src, ref, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", ref=ref)

        options = calls.of("gdal_translate")[0][2]
        assert options["projwin"] == [1000.0, 1120.0, 1120.0, 1000.0]

    def test_ref_resolution_rounded(self, calls, src, ref, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", ref=ref, tr=50.0)

        # 120 m reference extent: 50 m rounded to 2 pixels of 60 m
        assert calls.of("gdal_translate")[0][2]["tr"] == (60.0, 60.0)

    def test_bbox_mask_snapped_on_source(self, calls, src, tmp_path):
        mask = BBox(1020.0, 1020.0, 1061.0, 1049.0, crs="EPSG:32632")

        gdal_warp(src, tmp_path / "out.tif", mask=mask)

        options = calls.of("gdal_translate")[0][2]
        assert options["projwin"] == [1015.0, 1053.0, 1065.0, 1013.0]

    def test_fine_resolution_uses_nearest(self, calls, src, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", tr=(2.0, 2.0))
        assert calls.of("gdal_translate")[0][2]["r"] == "nearest"

    def test_coarse_reference_uses_mode(self, calls, src, ref, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", ref=ref)
        assert calls.of("gdal_translate")[0][2]["r"] == "mode"

    def test_nodata_options(self, calls, src, tmp_path):
        gdal_warp(src, tmp_path / "a.tif", dstnodata=0)
        gdal_warp(src, tmp_path / "b.tif", dstnodata=math.nan)

        assert calls[0][2]["a_nodata"] == 0
        assert calls[1][2]["a_nodata"] == "none"

    def test_extra_options_passed(self, calls, src, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", of="VRT", co=["TILED=YES"])

        options = calls[0][2]
        assert options["of"] == "VRT"
        assert options["co"] == ["TILED=YES"]


class TestGdalWarpReproject:
    """Outputs in another coordinate system are produced with gdalwarp"""

    def test_t_srs(self, calls, src, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", t_srs="EPSG:32633", r="bilinear")

        assert len(calls.of("gdal_translate")) == 0
        options = calls.of("gdalwarp")[0][2]
        assert options["s_srs"] == "EPSG:32632"
        assert options["t_srs"] == "EPSG:32633"
        assert options["r"] == "bilinear"
        assert options["cutline"] is None
        assert len(options["te"]) == 4

    def test_reprojection_defaults_to_nearest(self, calls, src, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", t_srs="EPSG:32633")
        assert calls.of("gdalwarp")[0][2]["r"] == "near"

    def test_ref_in_other_crs(self, calls, src, tmp_path, write_raster):
        ref = write_raster(
            tmp_path / "ref33.tif",
            np.zeros((5, 5), dtype=np.uint8),
            crs="EPSG:32633",
            lower_left=(200000.0, 5000000.0),
            res=30.0,
        )

        gdal_warp(src, tmp_path / "out.tif", ref=ref)

        options = calls.of("gdalwarp")[0][2]
        assert options["t_srs"] == "EPSG:32633"
        assert options["te"] == [200000.0, 5000000.0, 200150.0, 5000150.0]
        assert options["tr"] == (30.0, 30.0)

    def test_nodata_nan(self, calls, src, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", t_srs="EPSG:32633", dstnodata=math.nan)
        assert calls.of("gdalwarp")[0][2]["dstnodata"] == "None"

    def test_polygon_mask_used_as_cutline(self, calls, src, tmp_path):
        from shapely.geometry import Polygon

        polygon = Polygon([(1020, 1020), (1061, 1020), (1040, 1049)])

        gdal_warp(src, tmp_path / "out.tif", mask=polygon)

        options = calls.of("gdalwarp")[0][2]
        assert options["cutline"].endswith("cutline.gpkg")
        assert options["te"] == [1015.0, 1013.0, 1065.0, 1053.0]

    def test_no_tmpdir_without_cutline(self, calls, src, ref, tmp_path, monkeypatch):
        created = []
        monkeypatch.setattr(
            "fidolasen.processing.warp.tempfile.mkdtemp", lambda **kw: created.append(kw)
        )

        gdal_warp(src, tmp_path / "a.tif")
        gdal_warp(src, tmp_path / "b.tif", ref=ref, mask=SOURCE_EXTENT)
        gdal_warp(src, tmp_path / "c.tif", mask=BBox(1020, 1020, 1061, 1049, crs="EPSG:32632"))

        assert created == []

    def test_vector_file_mask(self, calls, src, tmp_path):
        import geopandas as gpd
        from shapely.geometry import box

        mask_file = tmp_path / "field.geojson"
        gpd.GeoDataFrame(geometry=[box(1020, 1020, 1061, 1049)], crs="EPSG:32632").to_file(
            mask_file, driver="GeoJSON"
        )

        gdal_warp(src, tmp_path / "out.tif", mask=str(mask_file))

        options = calls.of("gdalwarp")[0][2]
        assert options["cutline"] is not None
        assert options["te"] == [1015.0, 1013.0, 1065.0, 1053.0]

    def test_raster_mask_uses_extent_only(self, calls, src, ref, tmp_path):
        gdal_warp(src, tmp_path / "out.tif", mask=ref)

        assert len(calls.of("gdalwarp")) == 0
        options = calls.of("gdal_translate")[0][2]
        assert options["projwin"] == [995.0, 1123.0, 1125.0, 993.0]


class TestGdalWarpValidation:
    def test_length_mismatch(self, calls, src, tmp_path):
        with pytest.raises(ValidationError, match="same length"):
            gdal_warp([src, src], [tmp_path / "out.tif"])

    def test_unknown_format(self, calls, src, tmp_path):
        with pytest.raises(FormatError):
            gdal_warp(src, tmp_path / "out.tif", of="NotAGdalDriver")

    def test_unsupported_mask(self, calls, src, tmp_path):
        with pytest.raises(ValidationError, match="not supported"):
            gdal_warp(src, tmp_path / "out.tif", mask=42)


class TestGdalwarpGrid:
    """Test warping on the grid of a reference raster"""

    def test_extent_rounded_on_reference_grid(self, calls, src, ref, tmp_path):
        dst = str(tmp_path / "out.tif")

        result = gdalwarp_grid(src, dst, ref=ref, dstnodata=0)

        assert result == [dst]
        tool, args, options = calls[0]
        assert tool == "gdalwarp"
        assert args == (src, dst)
        # (1005, 1003, 1105, 1103) rounded on 20 m lines from (1000, 1000)
        assert options["te"] == [1000.0, 1000.0, 1100.0, 1100.0]
        assert options["tr"] == (20.0, 20.0)
        assert options["s_srs"] == options["t_srs"] == "EPSG:32632"
        assert options["of"] == "GTiff"
        assert options["dstnodata"] == 0

    def test_several_files(self, calls, src, ref, tmp_path):
        gdalwarp_grid([src, ref], [tmp_path / "a.vrt", tmp_path / "b.vrt"], ref=ref, of="VRT")

        assert len(calls) == 2
        assert {c[2]["of"] for c in calls} == {"VRT"}

    def test_length_mismatch(self, calls, src, ref):
        with pytest.raises(ValidationError):
            gdalwarp_grid([src], [], ref=ref)
