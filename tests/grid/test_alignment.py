"""Tests for bounding boxes and grid alignment."""

import pytest

from fidolasen.grid.alignment import (
    BBox,
    default_resampling,
    reproject_bbox,
    round_resolution,
    snap_bbox_outward,
    snap_bbox_round,
)


class TestBBox:
    def test_orders(self):
        bbox = BBox(499980.0, 4990200.0, 609780.0, 5100000.0, crs="EPSG:32632")

        assert bbox.to_te() == [499980.0, 4990200.0, 609780.0, 5100000.0]
        assert bbox.to_projwin() == [499980.0, 5100000.0, 609780.0, 4990200.0]
        assert bbox.width == 109800.0
        assert bbox.height == 109800.0

    def test_from_bounds(self):
        bbox = BBox.from_bounds((0, 1, 2, 3), crs="EPSG:4326")
        assert bbox == BBox(0.0, 1.0, 2.0, 3.0, crs="EPSG:4326")

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid bounding box"):
            BBox(10.0, 0.0, 0.0, 10.0)


class TestSnapping:
    """Test alignment of extents on a reference grid"""

    def test_round_to_nearest_line(self):
        bbox = snap_bbox_round(BBox(3.0, 7.0, 96.0, 104.0), (0.0, 0.0), (10.0, 10.0))
        assert bbox.to_te() == [0.0, 10.0, 100.0, 100.0]

    def test_round_with_offset_origin(self):
        bbox = snap_bbox_round(BBox(12.0, 12.0, 58.0, 58.0), (5.0, 5.0), (10.0, 10.0))
        assert bbox.to_te() == [15.0, 15.0, 55.0, 55.0]

    def test_outward_contains_input(self):
        bbox = snap_bbox_outward(BBox(3.0, 7.0, 96.0, 104.0), (0.0, 0.0), (10.0, 10.0))
        assert bbox.to_te() == [0.0, 0.0, 100.0, 110.0]

    def test_outward_keeps_aligned_edges(self):
        bbox = snap_bbox_outward(BBox(20.0, 20.0, 60.0, 60.0), (0.0, 0.0), (20.0, 20.0))
        assert bbox.to_te() == [20.0, 20.0, 60.0, 60.0]

    def test_crs_kept(self):
        bbox = snap_bbox_round(BBox(3.0, 7.0, 96.0, 104.0, crs="EPSG:32632"), (0, 0), (10, 10))
        assert bbox.crs == "EPSG:32632"


class TestResolution:
    def test_round_resolution(self):
        assert round_resolution((120, 120), (10.0, 10.0), (250.0, 250.0)) == (240.0, 240.0)

    def test_round_resolution_exact_divisor(self):
        assert round_resolution((100, 50), (10.0, 10.0), (20.0, 25.0)) == (20.0, 25.0)

    def test_round_resolution_coarser_than_extent(self):
        assert round_resolution((10, 10), (10.0, 10.0), (1000.0, 1000.0)) == (100.0, 100.0)

    @pytest.mark.parametrize(
        "tr, src_res, expected",
        [
            ((10.0, 10.0), (60.0, 60.0), "near"),
            (None, (10.0, 10.0), "near"),
            ((20.0, 20.0), (10.0, 10.0), "mode"),
            ((10.0, 10.0), (10.0, 10.0), "mode"),
            ((10.0, 40.0), (60.0, 60.0), "mode"),
        ],
    )
    def test_default_resampling(self, tr, src_res, expected):
        assert default_resampling(tr, src_res) == expected


class TestReprojectBBox:
    def test_same_crs(self):
        bbox = BBox(600000.0, 5000000.0, 610000.0, 5010000.0, crs="EPSG:32632")
        out = reproject_bbox(bbox, "EPSG:32632")
        assert out.to_te() == bbox.to_te()

    def test_to_geographic(self):
        bbox = BBox(600000.0, 5000000.0, 610000.0, 5010000.0, crs="EPSG:32632")
        out = reproject_bbox(bbox, "EPSG:4326")

        assert out.crs.to_epsg() == 4326
        assert 10.0 < out.xmin < out.xmax < 11.0
        assert 45.0 < out.ymin < out.ymax < 46.0

    def test_missing_crs(self):
        with pytest.raises(ValueError, match="no coordinate system"):
            reproject_bbox(BBox(0.0, 0.0, 1.0, 1.0), "EPSG:4326")
