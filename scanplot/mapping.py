"""
Mapping of fixation coordinates from tracker-space to image-space.
"""
import logging
import math
from typing import Optional, Tuple

import pandas as pd

from scanplot.errors import ConfigurationError, MissingFieldError

logger = logging.getLogger(__name__)


def validate_geometry(tracker_size: Tuple[float, float],
                      image_size: Optional[Tuple[float, float]] = None) -> None:
    """
    Check that tracker and image dimensions are positive and finite.

    Parameters:
    -----------
    tracker_size : Tuple[float, float]
        Tracker screen dimensions (width, height) in pixels
    image_size : Optional[Tuple[float, float]], optional
        Stimulus image dimensions (width, height) in pixels, by default None

    Raises:
    -------
    ConfigurationError
        If any dimension is zero, negative or not a finite number
    """
    dims = {
        'tracker_width': tracker_size[0],
        'tracker_height': tracker_size[1],
    }
    if image_size is not None:
        dims['image_width'] = image_size[0]
        dims['image_height'] = image_size[1]
    for name, value in dims.items():
        try:
            valid = math.isfinite(value) and value > 0
        except TypeError:
            valid = False
        if not valid:
            raise ConfigurationError(f"{name} must be a positive number, got {value!r}")


def map_to_image(df: pd.DataFrame, tracker_size: Tuple[float, float],
                 image_size: Tuple[float, float]) -> pd.DataFrame:
    """
    Scale fixation points to fit image dimensions.

    Parameters:
    -----------
    df : pd.DataFrame
        Fixation data with 'fixX' and 'fixY' columns in tracker pixels
    tracker_size : Tuple[float, float]
        Tracker screen dimensions (width, height) in pixels
    image_size : Tuple[float, float]
        Stimulus image dimensions (width, height) in pixels

    Returns:
    --------
    pd.DataFrame
        Copy of the data with 'img_x' and 'img_y' columns added
    """
    validate_geometry(tracker_size, image_size)
    missing = [col for col in ('fixX', 'fixY') if col not in df.columns]
    if missing:
        raise MissingFieldError(missing)

    tracker_w, tracker_h = tracker_size
    img_w, img_h = image_size

    mapped = df.copy()
    mapped['img_x'] = mapped['fixX'] * (img_w / tracker_w)
    mapped['img_y'] = mapped['fixY'] * (img_h / tracker_h)

    logger.info("Image width: %s Image height: %s", img_w, img_h)
    if not mapped.empty:
        logger.info("Fixation X range: %s %s", mapped['img_x'].min(), mapped['img_x'].max())
        logger.info("Fixation Y range: %s %s", mapped['img_y'].min(), mapped['img_y'].max())

    return mapped
