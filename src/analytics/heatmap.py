"""Density heatmap rendering from location bins.

Projects binned footfall onto a pixel grid spanning the bins' bounding
box, applies Gaussian smoothing, and produces colored PNG images.
"""

import logging
from collections.abc import Sequence

import cv2
import numpy as np
from scipy.ndimage import gaussian_filter

from src.analytics.geo import LocationBin

logger = logging.getLogger(__name__)

COLORMAPS = {
    "jet": cv2.COLORMAP_JET,
    "hot": cv2.COLORMAP_HOT,
    "inferno": cv2.COLORMAP_INFERNO,
    "viridis": cv2.COLORMAP_VIRIDIS,
}


class HeatmapGenerator:
    """Builds and exports density heatmaps from location bins.

    Accumulates bin counts into a 2D grid and applies Gaussian
    smoothing for visualization. North is at the top of the image.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        sigma: Standard deviation for the Gaussian smoothing kernel.
    """

    def __init__(self, width: int, height: int, sigma: float = 20.0) -> None:
        self.width = width
        self.height = height
        self.sigma = sigma
        self.accumulator = np.zeros((height, width), dtype=np.float32)

    def add_point(self, x: float, y: float, weight: float = 1.0) -> None:
        """Add weight at a pixel position.

        Points outside the image are silently ignored.

        Args:
            x: Horizontal pixel coordinate.
            y: Vertical pixel coordinate.
            weight: Contribution weight for this point.
        """
        ix, iy = int(x), int(y)
        if 0 <= ix < self.width and 0 <= iy < self.height:
            self.accumulator[iy, ix] += weight

    def project(
        self,
        lat: float,
        lng: float,
        bounds: tuple[float, float, float, float],
    ) -> tuple[float, float]:
        """Map a coordinate to a pixel position within ``bounds``.

        Args:
            lat: Latitude.
            lng: Longitude.
            bounds: ``(min_lat, max_lat, min_lng, max_lng)``.

        Returns:
            ``(x, y)`` pixel position. A zero-width span maps to the center.
        """
        min_lat, max_lat, min_lng, max_lng = bounds
        lat_span = max_lat - min_lat
        lng_span = max_lng - min_lng
        x = (self.width - 1) / 2
        y = (self.height - 1) / 2
        if lng_span:
            x = (lng - min_lng) / lng_span * (self.width - 1)
        if lat_span:
            y = (max_lat - lat) / lat_span * (self.height - 1)
        return x, y

    def add_bins(self, bins: Sequence[LocationBin]) -> None:
        """Accumulate location bins weighted by their footfall count.

        Args:
            bins: Bins from ``bin_locations``.
        """
        if not bins:
            return
        bounds = (
            min(b.lat for b in bins),
            max(b.lat for b in bins),
            min(b.lng for b in bins),
            max(b.lng for b in bins),
        )
        for b in bins:
            x, y = self.project(b.lat, b.lng, bounds)
            self.add_point(x, y, weight=float(b.count))

    def generate_heatmap(self, normalize: bool = True) -> np.ndarray:
        """Generate a Gaussian-smoothed heatmap.

        Args:
            normalize: If True, scale values to the ``[0, 1]`` range.

        Returns:
            2D numpy array of smoothed heatmap values.
        """
        smoothed = gaussian_filter(self.accumulator, sigma=self.sigma)
        if normalize and smoothed.max() > 0:
            smoothed = smoothed / smoothed.max()
        return smoothed

    def generate_colored_heatmap(self, colormap: int = cv2.COLORMAP_JET) -> np.ndarray:
        """Generate a BGR colored heatmap image.

        Args:
            colormap: OpenCV colormap constant (default ``cv2.COLORMAP_JET``).

        Returns:
            BGR image as a ``(H, W, 3)`` uint8 numpy array.
        """
        heatmap = self.generate_heatmap()
        heatmap_uint8 = (heatmap * 255).astype(np.uint8)
        return cv2.applyColorMap(heatmap_uint8, colormap)

    def export_png(self, output_path: str, colormap: str = "jet") -> None:
        """Export the heatmap as a PNG image.

        Args:
            output_path: File path for the output PNG.
            colormap: Colormap name, one of ``COLORMAPS``.

        Raises:
            ValueError: If the colormap name is unknown.
        """
        if colormap not in COLORMAPS:
            raise ValueError(
                f"Unknown colormap '{colormap}'. Supported: {sorted(COLORMAPS)}"
            )
        img = self.generate_colored_heatmap(COLORMAPS[colormap])
        cv2.imwrite(output_path, img)
        logger.info("Heatmap exported to %s", output_path)

    @classmethod
    def from_bins(
        cls,
        bins: Sequence[LocationBin],
        width: int,
        height: int,
        sigma: float = 20.0,
    ) -> "HeatmapGenerator":
        """Create a heatmap from location bins.

        Args:
            bins: Bins from ``bin_locations``.
            width: Image width in pixels.
            height: Image height in pixels.
            sigma: Gaussian smoothing sigma.

        Returns:
            HeatmapGenerator with all bins accumulated.
        """
        generator = cls(width, height, sigma)
        generator.add_bins(bins)
        return generator
