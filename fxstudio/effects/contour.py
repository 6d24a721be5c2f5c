"""Contour point extraction for shape-growing effects.

The renderer grows text particles along a shape. The shape comes from the
dark pixels of the background image; when the image cannot be read, a
filled circle is used instead.
"""

import logging
from typing import Dict, List, Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

ContourPoint = Dict[str, float]

# Below this many samples the image is treated as having no usable shape.
MIN_POINTS = 16


def extract_contour_points(
    image_path: Optional[str],
    width: int,
    height: int,
    threshold: int = 128,
    sample_density: int = 8,
) -> List[ContourPoint]:
    """Sample the pixels darker than ``threshold`` on a grid.

    Points are in output-video coordinates; opacity grows with darkness.
    """
    step = max(1, int(sample_density))
    if not image_path:
        return default_contour(width, height, step)

    try:
        with Image.open(image_path) as img:
            gray = img.convert("L").resize((width, height), Image.BILINEAR)
            pixels = np.asarray(gray, dtype=np.float32)
    except (OSError, ValueError) as exc:
        logger.warning("Contour extraction failed for %s: %s", image_path, exc)
        return default_contour(width, height, step)

    grid = pixels[::step, ::step]
    ys, xs = np.nonzero(grid < threshold)
    if len(xs) < MIN_POINTS:
        logger.info("Image %s has no usable shape, using default contour", image_path)
        return default_contour(width, height, step)

    opacity = 1.0 - grid[ys, xs] / 255.0
    return [
        {"x": int(x * step), "y": int(y * step), "opacity": round(float(o), 3)}
        for x, y, o in zip(xs, ys, opacity)
    ]


def default_contour(width: int, height: int, sample_density: int = 8) -> List[ContourPoint]:
    """A filled circle centred in the frame: rings plus an inner grid."""
    cx, cy = width / 2, height / 2
    radius = min(width, height) * 0.35
    step = max(1, int(sample_density))
    points: List[ContourPoint] = []

    angles = np.arange(0, 2 * np.pi, 0.1)
    for r in np.arange(radius * 0.3, radius + 1e-9, step):
        opacity = 0.5 + (r / radius) * 0.5
        for angle in angles:
            points.append({
                "x": int(round(cx + np.cos(angle) * r)),
                "y": int(round(cy + np.sin(angle) * r)),
                "opacity": round(float(opacity), 3),
            })

    coords = np.arange(-radius, radius + 1e-9, step * 2)
    for dy in coords:
        for dx in coords:
            dist = float(np.hypot(dx, dy))
            if dist < radius * 0.8:
                points.append({
                    "x": int(round(cx + dx)),
                    "y": int(round(cy + dy)),
                    "opacity": round(1 - dist / radius, 3),
                })
    return points
