"""
fidolasen Test Configuration

Shared pytest fixtures for all tests.
"""

from pathlib import Path

import numpy as np
import pytest


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from FIDOLASEN_* variables and runtime overrides"""
    from fidolasen.config import reset_settings

    for var in ("FIDOLASEN_GDAL_DIR", "FIDOLASEN_COMPRESS", "FIDOLASEN_VRT_DIRNAME"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def write_raster():
    """Factory writing a north-up raster with rasterio"""
    import rasterio
    from rasterio.transform import from_origin

    def _write(
        path,
        data,
        crs="EPSG:32632",
        lower_left=(600000.0, 5000000.0),
        res=10.0,
        nodata=None,
        driver="GTiff",
    ):
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[None]
        count, height, width = data.shape
        west, south = lower_left
        profile = {
            "driver": driver,
            "dtype": data.dtype.name,
            "width": width,
            "height": height,
            "count": count,
            "crs": crs,
            "transform": from_origin(west, south + height * res, res, res),
            "nodata": nodata,
        }
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with rasterio.open(str(path), "w", **profile) as dst:
            dst.write(data)
        return str(path)

    return _write


@pytest.fixture
def l2a_safe(tmp_path):
    """Empty L2A SAFE tree (compact naming, tile 32TQQ)"""
    from fidolasen.sample_data import create_sample_safe

    return create_sample_safe(tmp_path / "safe", level="2A", version="compact")


@pytest.fixture
def l1c_safe(tmp_path):
    """Empty L1C SAFE tree (compact naming, tile 32TQQ)"""
    from fidolasen.sample_data import create_sample_safe

    return create_sample_safe(tmp_path / "safe", level="1C", version="compact")


@pytest.fixture
def old_l1c_safe(tmp_path):
    """Empty L1C SAFE tree with old naming and granules in UTM zones 32 and 33"""
    from fidolasen.sample_data import create_sample_safe

    return create_sample_safe(
        tmp_path / "safe", level="1C", version="old", tiles=("32TQQ", "33TUL")
    )


@pytest.fixture
def old_l2a_safe(tmp_path):
    """Empty L2A SAFE tree with old naming (USER products, tile 32TQQ)"""
    from fidolasen.sample_data import create_sample_safe

    return create_sample_safe(tmp_path / "safe", level="2A", version="old")


@pytest.fixture
def sample_products(tmp_path):
    """Synthetic BOA and SCL GeoTIFFs of tile 32TQQ"""
    from fidolasen.sample_data import create_sample_data

    return create_sample_data(tmp_path / "products")


class GDALCallRecorder(list):
    """List of (tool, positional args, options) tuples of replaced GDAL wrappers"""

    def __init__(self, monkeypatch):
        super().__init__()
        self._monkeypatch = monkeypatch

    def patch(self, module: str, *tools: str):
        """Replace the given wrappers as imported in ``module``"""
        for tool in tools:

            def _fake(*args, _tool=tool, **options):
                self.append((_tool, args, options))

            self._monkeypatch.setattr(f"{module}.{tool}", _fake)

    def of(self, tool: str):
        return [c for c in self if c[0] == tool]


@pytest.fixture
def gdal_calls(monkeypatch):
    """Record GDAL utility calls instead of running them"""
    return GDALCallRecorder(monkeypatch)
