"""
Scene composition for one subject/trial scanpath.

A Scene is a backend-independent list of drawing primitives in image pixel
space (origin top-left, y pointing down), ordered back to front: background
image, path segments, fixation discs, order labels.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import Colormap, LinearSegmentedColormap

from scanplot.errors import MissingFieldError

RGBA = Tuple[float, float, float, float]

ORDER_PALETTE_STOPS = 7
LABEL_COLOR = "black"
LABEL_SIZE = 3.0
PATH_WIDTH = 0.5

SCENE_COLUMNS = ['img_x', 'img_y', 'fix_order', 'fix_size', 'label_visible']


@dataclass(frozen=True)
class Segment:
    """Path segment between two consecutive fixations."""
    x0: float
    y0: float
    x1: float
    y1: float
    color: RGBA


@dataclass(frozen=True)
class Disc:
    """Fixation marker; ``size`` is the rescaled duration."""
    x: float
    y: float
    size: float
    color: RGBA
    order: int


@dataclass(frozen=True)
class Label:
    """Order number drawn centred on its marker."""
    x: float
    y: float
    text: str
    color: Any


@dataclass(frozen=True, eq=False)
class Scene:
    image: np.ndarray
    width: int
    height: int
    segments: Tuple[Segment, ...]
    discs: Tuple[Disc, ...]
    labels: Tuple[Label, ...]
    n_orders: int
    path_width: float = PATH_WIDTH
    label_size: float = LABEL_SIZE
    subj_id: Optional[Any] = None
    trial_num: Optional[Any] = None

    def layout(self) -> dict:
        """Logical layout of the scene, independent of raster encoding."""
        return {
            'discs': [(d.x, d.y, d.size, d.order) for d in self.discs],
            'labels': [(lb.x, lb.y, lb.text) for lb in self.labels],
            'segments': [(s.x0, s.y0, s.x1, s.y1) for s in self.segments],
        }


def order_colormap(stops: int = ORDER_PALETTE_STOPS) -> Colormap:
    """Continuous colormap through a full-saturation hue sweep."""
    palette = sns.hls_palette(stops, h=0, l=0.5, s=1)
    return LinearSegmentedColormap.from_list("fixation_order", palette)


def order_colors(orders, n_orders: int, cmap: Optional[Colormap] = None) -> np.ndarray:
    """
    Map fixation orders onto the order colormap.

    Orders 1..n_orders are spread evenly over the colormap, so the first
    fixation always takes the first hue and the last one the last hue.
    """
    if cmap is None:
        cmap = order_colormap()
    orders = np.asarray(orders, dtype=float)
    if n_orders > 1:
        positions = (orders - 1) / (n_orders - 1)
    else:
        positions = np.zeros_like(orders)
    return cmap(positions)


def compose_scene(fixations: pd.DataFrame, image: np.ndarray,
                  label_color: Any = LABEL_COLOR,
                  cmap: Optional[Colormap] = None,
                  subj_id: Optional[Any] = None,
                  trial_num: Optional[Any] = None) -> Scene:
    """
    Compose the scanpath scene of one subject.

    Parameters:
    -----------
    fixations : pd.DataFrame
        Mapped and encoded fixations with 'img_x', 'img_y', 'fix_order',
        'fix_size' and 'label_visible' columns, in temporal order
    image : np.ndarray
        Decoded stimulus image (height x width x channels)
    label_color : Any, optional
        Colour of the order labels, by default "black"
    cmap : Optional[Colormap], optional
        Order colormap, by default :func:`order_colormap`
    subj_id, trial_num : optional
        Identifiers carried along for logging and export

    Returns:
    --------
    Scene
        Immutable scene description
    """
    missing = [col for col in SCENE_COLUMNS if col not in fixations.columns]
    if missing:
        raise MissingFieldError(missing, context="mapped fixation data")

    height, width = image.shape[:2]
    xs = fixations['img_x'].to_numpy(dtype=float)
    ys = fixations['img_y'].to_numpy(dtype=float)
    orders = fixations['fix_order'].to_numpy(dtype=int)
    sizes = fixations['fix_size'].to_numpy(dtype=float)
    visible = fixations['label_visible'].to_numpy(dtype=bool)

    n_orders = int(orders.max()) if len(orders) else 0
    colors = [tuple(c) for c in order_colors(orders, n_orders, cmap)]

    # Each segment takes the colour of the fixation it starts from
    segments = tuple(
        Segment(xs[i], ys[i], xs[i + 1], ys[i + 1], colors[i])
        for i in range(len(xs) - 1)
    )
    discs = tuple(
        Disc(xs[i], ys[i], sizes[i], colors[i], int(orders[i]))
        for i in range(len(xs))
    )
    labels = tuple(
        Label(xs[i], ys[i], str(orders[i]), label_color)
        for i in range(len(xs)) if visible[i]
    )

    return Scene(
        image=image,
        width=int(width),
        height=int(height),
        segments=segments,
        discs=discs,
        labels=labels,
        n_orders=n_orders,
        subj_id=subj_id,
        trial_num=trial_num,
    )
