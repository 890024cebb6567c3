"""Tests for density heatmap rendering."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from src.analytics.geo import LocationBin
from src.analytics.heatmap import COLORMAPS, HeatmapGenerator


def _bins() -> list[LocationBin]:
    return [
        LocationBin((19.076, 72.877), 19.076, 72.877, 10),
        LocationBin((19.080, 72.881), 19.080, 72.881, 30),
    ]


class TestHeatmapGenerator:
    """Tests for the HeatmapGenerator class."""

    def test_add_point_accumulates(self) -> None:
        """Adding a point increases the accumulator value."""
        gen = HeatmapGenerator(100, 100, sigma=5.0)
        gen.add_point(50, 50)
        assert gen.accumulator[50, 50] == 1.0

    def test_add_point_out_of_bounds(self) -> None:
        """Out-of-bounds points are ignored."""
        gen = HeatmapGenerator(100, 100, sigma=5.0)
        gen.add_point(200, 200)
        assert gen.accumulator.sum() == 0.0

    def test_add_point_weight(self) -> None:
        """Custom weight is applied to the accumulator."""
        gen = HeatmapGenerator(100, 100, sigma=5.0)
        gen.add_point(50, 50, weight=3.0)
        assert gen.accumulator[50, 50] == 3.0

    def test_generate_heatmap_normalized(self) -> None:
        """Normalized heatmap has values in [0, 1]."""
        gen = HeatmapGenerator(100, 100, sigma=5.0)
        gen.add_point(50, 50, weight=10.0)
        heatmap = gen.generate_heatmap(normalize=True)
        assert heatmap.max() <= 1.0
        assert heatmap.min() >= 0.0

    def test_generate_heatmap_empty(self) -> None:
        """Empty accumulator produces an all-zero heatmap."""
        gen = HeatmapGenerator(100, 100, sigma=5.0)
        assert gen.generate_heatmap().max() == 0.0

    def test_generate_colored_heatmap_shape(self) -> None:
        """Colored heatmap has correct BGR shape."""
        gen = HeatmapGenerator(120, 80, sigma=5.0)
        gen.add_point(50, 50)
        colored = gen.generate_colored_heatmap()
        assert colored.shape == (80, 120, 3)
        assert colored.dtype == np.uint8


class TestProjection:
    """Tests for coordinate projection."""

    def test_corners(self) -> None:
        """North-west maps to top-left, south-east to bottom-right."""
        gen = HeatmapGenerator(101, 51)
        bounds = (10.0, 20.0, 30.0, 40.0)
        assert gen.project(20.0, 30.0, bounds) == (0.0, 0.0)
        assert gen.project(10.0, 40.0, bounds) == (100.0, 50.0)

    def test_zero_span_maps_to_center(self) -> None:
        """A single location lands in the middle of the image."""
        gen = HeatmapGenerator(101, 51)
        assert gen.project(5.0, 5.0, (5.0, 5.0, 5.0, 5.0)) == (50.0, 25.0)

    def test_add_bins_weights_by_count(self) -> None:
        """Bins add their footfall count as weight."""
        gen = HeatmapGenerator(100, 100, sigma=1.0)
        gen.add_bins(_bins())
        assert gen.accumulator.sum() == pytest.approx(40.0)

    def test_add_bins_empty(self) -> None:
        """No bins leaves the accumulator untouched."""
        gen = HeatmapGenerator(100, 100)
        gen.add_bins([])
        assert gen.accumulator.sum() == 0.0


class TestExport:
    """Tests for PNG export."""

    def test_export_png(self, tmp_path: Path) -> None:
        """PNG file is written with the configured size."""
        out = tmp_path / "heatmap.png"
        gen = HeatmapGenerator.from_bins(_bins(), 64, 48, sigma=3.0)
        gen.export_png(str(out))
        img = cv2.imread(str(out))
        assert img is not None
        assert img.shape == (48, 64, 3)

    @pytest.mark.parametrize("name", sorted(COLORMAPS))
    def test_export_colormaps(self, tmp_path: Path, name: str) -> None:
        """Every named colormap exports."""
        out = tmp_path / f"{name}.png"
        HeatmapGenerator.from_bins(_bins(), 32, 32, sigma=2.0).export_png(
            str(out), colormap=name
        )
        assert out.exists()

    def test_unknown_colormap(self, tmp_path: Path) -> None:
        """Unknown colormap names are rejected."""
        gen = HeatmapGenerator.from_bins(_bins(), 32, 32)
        with pytest.raises(ValueError, match="Unknown colormap"):
            gen.export_png(str(tmp_path / "x.png"), colormap="rainbow")
