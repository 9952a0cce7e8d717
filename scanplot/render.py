"""
Rendering of scanpath scenes.

``render_scene`` drives any :class:`Canvas`; :class:`MatplotlibCanvas` is the
raster backend used for export. Sizes follow ggplot2 units (millimetres) so
that markers, labels and paths keep the proportions of the original plots.
"""
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.cm import ScalarMappable
from matplotlib.collections import LineCollection
from matplotlib.colors import Colormap, Normalize

from scanplot.errors import ExportError
from scanplot.scene import Disc, Label, Scene, Segment, order_colormap

logger = logging.getLogger(__name__)

# Points per millimetre (ggplot2's .pt)
PT_PER_MM = 72.27 / 25.4

DEFAULT_DPI = 100


class Canvas(ABC):
    """2D drawing surface in image pixel coordinates."""

    @abstractmethod
    def draw_image(self, image: np.ndarray, width: int, height: int) -> None:
        ...

    @abstractmethod
    def draw_segments(self, segments: Sequence[Segment], width: float) -> None:
        ...

    @abstractmethod
    def draw_discs(self, discs: Sequence[Disc]) -> None:
        ...

    @abstractmethod
    def draw_text(self, labels: Sequence[Label], size: float) -> None:
        ...

    @abstractmethod
    def draw_order_key(self, cmap: Colormap, n_orders: int) -> None:
        ...

    @abstractmethod
    def save(self, path: Union[str, Path]) -> None:
        ...

    def close(self) -> None:
        """Release backend resources."""


def render_scene(scene: Scene, canvas: Canvas, show_order_key: bool = False) -> Canvas:
    """Draw ``scene`` onto ``canvas`` back to front."""
    canvas.draw_image(scene.image, scene.width, scene.height)
    if scene.segments:
        canvas.draw_segments(scene.segments, scene.path_width)
    if scene.discs:
        canvas.draw_discs(scene.discs)
    if scene.labels:
        canvas.draw_text(scene.labels, scene.label_size)
    if show_order_key and scene.n_orders > 0:
        canvas.draw_order_key(order_colormap(), scene.n_orders)
    return canvas


def _figsize(width: int, height: int, dpi: float):
    # Agg truncates the canvas to whole pixels, pad by a fraction of a pixel
    return (width + 0.01) / dpi, (height + 0.01) / dpi


class MatplotlibCanvas(Canvas):
    """
    Matplotlib raster canvas sized to exactly ``width`` x ``height`` pixels.

    Parameters:
    -----------
    width, height : int
        Output raster dimensions in pixels
    dpi : float, optional
        Figure resolution, by default 100
    """

    def __init__(self, width: int, height: int, dpi: float = DEFAULT_DPI):
        self.width = width
        self.height = height
        self.dpi = dpi
        self.fig = plt.figure(figsize=_figsize(width, height, dpi), dpi=dpi)
        self.ax = self.fig.add_axes([0, 0, 1, 1])
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(height, 0)  # Invert Y axis to match image coordinates
        self.ax.set_aspect('equal')
        self.ax.axis('off')

    def draw_image(self, image: np.ndarray, width: int, height: int) -> None:
        self.ax.imshow(image, extent=[0, width, height, 0],
                       interpolation='bilinear', zorder=1)
        # imshow resets the limits to the extent
        self.ax.set_xlim(0, width)
        self.ax.set_ylim(height, 0)

    def draw_segments(self, segments: Sequence[Segment], width: float) -> None:
        lines = LineCollection(
            [[(s.x0, s.y0), (s.x1, s.y1)] for s in segments],
            colors=[s.color for s in segments],
            linewidths=width * PT_PER_MM,
            capstyle='round',
            zorder=2,
        )
        self.ax.add_collection(lines)

    def draw_discs(self, discs: Sequence[Disc]) -> None:
        self.ax.scatter(
            [d.x for d in discs], [d.y for d in discs],
            s=[(d.size * PT_PER_MM) ** 2 for d in discs],
            c=[d.color for d in discs],
            marker='o', linewidths=0, zorder=3,
        )

    def draw_text(self, labels: Sequence[Label], size: float) -> None:
        for label in labels:
            self.ax.text(
                label.x, label.y, label.text,
                color=label.color, fontsize=size * PT_PER_MM, fontweight='bold',
                ha='center', va='center', zorder=4, clip_on=True,
            )

    def draw_order_key(self, cmap: Colormap, n_orders: int) -> None:
        cax = self.ax.inset_axes([0.92, 0.55, 0.02, 0.4])
        mappable = ScalarMappable(norm=Normalize(vmin=1, vmax=max(n_orders, 2)), cmap=cmap)
        cbar = self.fig.colorbar(mappable, cax=cax)
        cbar.set_label('Fixation Order')

    def save(self, path: Union[str, Path]) -> None:
        """Write the figure to ``path`` atomically, format from the extension."""
        path = Path(path)
        fmt = path.suffix.lstrip('.').lower() or 'png'
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=path.suffix,
                                        dir=path.parent)
        try:
            with os.fdopen(fd, 'wb') as fh:
                self.fig.savefig(fh, format=fmt, dpi=self.dpi)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise

    def close(self) -> None:
        plt.close(self.fig)


def save_scene(scene: Scene, path: Union[str, Path], dpi: float = DEFAULT_DPI,
               show_order_key: bool = False) -> Path:
    """
    Render a scene with matplotlib and write it to ``path``.

    Parameters:
    -----------
    scene : Scene
        Scene to render
    path : Union[str, Path]
        Output file; missing parent directories are created
    dpi : float, optional
        Figure resolution, by default 100. The raster is always
        scene.width x scene.height pixels.
    show_order_key : bool, optional
        Whether to draw a colour key for fixation order, by default False

    Returns:
    --------
    Path
        The written file

    Raises:
    -------
    ExportError
        If the file cannot be written
    """
    path = Path(path)
    canvas = MatplotlibCanvas(scene.width, scene.height, dpi=dpi)
    try:
        render_scene(scene, canvas, show_order_key=show_order_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        canvas.save(path)
    except (OSError, ValueError) as e:
        raise ExportError(f"Could not write scene to {path}: {e}") from e
    finally:
        canvas.close()

    logger.debug("Saved %s (%dx%d px)", path, scene.width, scene.height)
    return path
