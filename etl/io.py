"""
Functions for loading fixation tables and stimulus images, and saving reports
"""
import logging
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
from PIL import Image, UnidentifiedImageError

from etl.preprocess import rename_columns
from scanplot.errors import StimulusImageError

logger = logging.getLogger(__name__)


def load_fixations(path: Union[str, Path],
                   columns: Optional[Dict[str, str]] = None) -> pd.DataFrame:
    """
    Load a table of pre-extracted fixations.

    Parameters:
    -----------
    path : Union[str, Path]
        Path to a CSV or parquet file, one fixation per row in temporal order
    columns : Optional[Dict[str, str]], optional
        Mapping of raw column names to 'fixX', 'fixY', 'fixDuration',
        'trialNum' and 'subjID', by default None

    Returns:
    --------
    pd.DataFrame
        Fixation data with canonical column names
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Fixation file not found: {path}")

    if path.suffix.lower() == '.parquet':
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(path)

    logger.debug('load_fixations %s shape: %s', path, df.shape)
    return rename_columns(df, columns)


def load_stimulus(path: Union[str, Path]) -> np.ndarray:
    """
    Read and decode the stimulus image.

    Parameters:
    -----------
    path : Union[str, Path]
        Path to the image file

    Returns:
    --------
    np.ndarray
        Pixel data (height x width x channels), RGB or RGBA

    Raises:
    -------
    StimulusImageError
        If the file is missing or cannot be decoded
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            mode = 'RGBA' if 'A' in img.getbands() else 'RGB'
            pixels = np.asarray(img.convert(mode))
    except FileNotFoundError as e:
        raise StimulusImageError(f"Stimulus image not found: {path}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise StimulusImageError(f"Could not decode stimulus image {path}: {e}") from e

    pixels.setflags(write=False)
    logger.debug('load_stimulus %s size: %sx%s', path, pixels.shape[1], pixels.shape[0])
    return pixels


def save_report(df: pd.DataFrame, output_path: str, format: str = "csv") -> None:
    """
    Save a run report.

    Parameters:
    -----------
    df : pd.DataFrame
        DataFrame to save
    output_path : str
        Path to save the DataFrame to
    format : str, optional
        File format ("csv", "parquet"), by default "csv"
    """
    path = Path(output_path)

    # Create parent directories if they don't exist
    path.parent.mkdir(parents=True, exist_ok=True)

    if format.lower() == "csv":
        df.to_csv(path, index=False)
    elif format.lower() == "parquet":
        df.to_parquet(path, index=False)
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'csv' or 'parquet'.")
