"""Tests for sample data generation."""

from pathlib import Path

import numpy as np

from fidolasen.naming.safe import SafeProduct
from fidolasen.naming.shortname import parse_shortname
from fidolasen.sample_data import create_sample_data, create_sample_safe


class TestCreateSampleData:
    def test_products(self, tmp_path):
        import rasterio

        files = create_sample_data(tmp_path, tiles=("32TQQ", "33TUL"), size=16)

        assert [Path(f).name for f in files["BOA"]] == [
            "S2A2A_20170603_022_32TQQ_BOA_10.tif",
            "S2A2A_20170603_022_33TUL_BOA_10.tif",
        ]
        assert parse_shortname(files["SCL"][1]).id_tile == "33TUL"

        with rasterio.open(files["BOA"][1]) as src:
            assert src.count == 4
            assert src.crs.to_epsg() == 32633
            assert src.nodata == 65535
            assert (src.width, src.height) == (16, 16)

        with rasterio.open(files["SCL"][0]) as src:
            scl = src.read(1)
        assert scl.dtype == np.uint8
        assert (scl[:, -1] == 0).all()


class TestCreateSampleSafe:
    def test_layout_is_recognised(self, tmp_path):
        safe = create_sample_safe(tmp_path, level="1C", version="old", tiles=("32TQQ",))

        product = SafeProduct(safe)
        assert product.version == "old"
        assert product.tiles == ["32TQQ"]
        assert len(product.jp2list) == 13
