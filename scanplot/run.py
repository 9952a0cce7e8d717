"""
Scanpath plotting pipeline runner.

This module renders one fixation scanpath image per subject and trial, and
provides a command-line interface to run it.
"""
import argparse
import json
import logging
from multiprocessing import Pool
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from etl.io import load_fixations, load_stimulus, save_report
from etl.preprocess import (
    normalize_trials, rename_columns, require_columns, select_trial, split_subjects
)
from scanplot.encoding import SIZE_RANGE, encode_fixations
from scanplot.errors import ConfigurationError, ScanplotError
from scanplot.export import find_collisions, resolve_output_path, validate_template
from scanplot.mapping import map_to_image, validate_geometry
from scanplot.overlap import DEFAULT_OVERLAP_THRESHOLD, label_visibility
from scanplot.render import DEFAULT_DPI, save_scene
from scanplot.scene import LABEL_COLOR, Scene, compose_scene

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    'subjID', 'trial_num', 'n_fixations', 'n_labels', 'output_path', 'status', 'error'
]


def setup_logging(verbosity: int = 0) -> None:
    """
    Set up logging with appropriate verbosity.

    Parameters:
    -----------
    verbosity : int, optional
        0 = WARNING, 1 = INFO, 2 = DEBUG, by default 0
    """
    log_levels = {
        0: logging.WARNING,
        1: logging.INFO,
        2: logging.DEBUG
    }
    level = log_levels.get(verbosity, logging.DEBUG)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_scene(subj_data: pd.DataFrame, image: np.ndarray,
                overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
                size_range: Tuple[float, float] = SIZE_RANGE,
                label_color: Any = LABEL_COLOR,
                subj_id: Any = None, trial_num: Any = None) -> Scene:
    """
    Encode, resolve label overlap and compose the scene of one subject.

    Parameters:
    -----------
    subj_data : pd.DataFrame
        Mapped fixations ('img_x', 'img_y', 'fixDuration') of one subject in
        one trial, in temporal order
    image : np.ndarray
        Decoded stimulus image
    overlap_threshold : float, optional
        Pixel distance below which only the longer fixation keeps its label,
        by default 50
    size_range : Tuple[float, float], optional
        Marker size range for the duration rescale, by default (1, 10)
    label_color : Any, optional
        Colour of the order labels, by default "black"

    Returns:
    --------
    Scene
        The composed scene
    """
    encoded = encode_fixations(subj_data, size_range=size_range)
    encoded['label_visible'] = label_visibility(encoded, overlap_threshold)
    logger.debug('Subject %s trial %s: %d fixations, %d labels hidden',
                 subj_id, trial_num, len(encoded), int((~encoded['label_visible']).sum()))
    return compose_scene(encoded, image, label_color=label_color,
                         subj_id=subj_id, trial_num=trial_num)


def plot_subject(subj_data: pd.DataFrame, image: np.ndarray, subj_id: Any, trial_num: Any,
                 output_path: str, overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
                 size_range: Tuple[float, float] = SIZE_RANGE,
                 label_color: Any = LABEL_COLOR, dpi: float = DEFAULT_DPI,
                 show_order_key: bool = False) -> Dict[str, Any]:
    """
    Render and save the scanpath of one subject in one trial.

    Failures are logged and reported in the returned row instead of raised,
    so one subject cannot abort the others.

    Returns:
    --------
    Dict[str, Any]
        Report row (see REPORT_COLUMNS)
    """
    row = {
        'subjID': subj_id,
        'trial_num': trial_num,
        'n_fixations': len(subj_data),
        'n_labels': 0,
        'output_path': output_path,
        'status': 'written',
        'error': None,
    }
    try:
        scene = build_scene(subj_data, image, overlap_threshold, size_range, label_color,
                            subj_id=subj_id, trial_num=trial_num)
        row['n_labels'] = len(scene.labels)
        save_scene(scene, output_path, dpi=dpi, show_order_key=show_order_key)
    except Exception as e:
        logger.error("Subject %s trial %s failed: %s", subj_id, trial_num, e,
                     exc_info=not isinstance(e, ScanplotError))
        row['status'] = 'failed'
        row['error'] = f"{type(e).__name__}: {e}"
    else:
        logger.info("Saved subject %s trial %s to %s", subj_id, trial_num, output_path)
    return row


def plot_eye_scan(
    fix_data: pd.DataFrame,
    image_path: str,
    tracker_width: float,
    tracker_height: float,
    trial_num: Any,
    output_path: str,
    overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    size_range: Tuple[float, float] = SIZE_RANGE,
    label_color: Any = LABEL_COLOR,
    dpi: float = DEFAULT_DPI,
    show_order_key: bool = False,
    strict_template: bool = True,
    workers: int = 1,
) -> pd.DataFrame:
    """
    Plot fixation scanpaths over the stimulus image, one file per subject and trial.

    Parameters:
    -----------
    fix_data : pd.DataFrame
        Fixations with 'fixX', 'fixY', 'fixDuration', 'trialNum' (or
        'trial_num') and 'subjID' columns, rows in temporal order
    image_path : str
        Path to the stimulus image
    tracker_width, tracker_height : float
        Eye-tracker screen dimensions in pixels
    trial_num : Any
        Trial number, or an iterable of trial numbers
    output_path : str
        Output file template with '{subjID}' and '{trial_num}' placeholders;
        the extension selects the image format
    overlap_threshold : float, optional
        Pixel distance below which only the longer of two fixations keeps its
        order label, by default 50
    size_range : Tuple[float, float], optional
        Marker size range for the duration rescale, by default (1, 10)
    label_color : Any, optional
        Colour of the order labels, by default "black"
    dpi : float, optional
        Figure resolution; the output always has the image's pixel size,
        by default 100
    show_order_key : bool, optional
        Draw a colour key for fixation order, by default False
    strict_template : bool, optional
        Reject templates missing a placeholder, by default True
    workers : int, optional
        Number of worker processes, by default 1 (sequential)

    Returns:
    --------
    pd.DataFrame
        One report row per subject and trial with the output path and a
        status of 'written', 'failed' or 'empty'

    Raises:
    -------
    ConfigurationError
        On invalid geometry, output template, missing columns or colliding
        output paths; raised before anything is rendered
    StimulusImageError
        If the stimulus image cannot be read
    """
    validate_template(output_path, strict=strict_template)
    validate_geometry((tracker_width, tracker_height))

    fix_data = rename_columns(fix_data)
    require_columns(fix_data)

    image = load_stimulus(image_path)
    img_height, img_width = image.shape[:2]

    mapped = map_to_image(fix_data, (tracker_width, tracker_height), (img_width, img_height))

    # One slot per report row in trial order: a ready row, or the index of a job
    slots: List[Union[Dict[str, Any], int]] = []
    jobs = []
    for trial in normalize_trials(trial_num):
        trial_data = select_trial(mapped, trial)
        if trial_data.empty:
            logger.warning("No fixations found for trial %s", trial)
            slots.append({
                'subjID': None, 'trial_num': trial, 'n_fixations': 0, 'n_labels': 0,
                'output_path': None, 'status': 'empty', 'error': None,
            })
            continue

        for subj_id, subj_data in split_subjects(trial_data):
            slots.append(len(jobs))
            jobs.append((
                subj_data, image, subj_id, trial,
                resolve_output_path(output_path, subj_id, trial),
                overlap_threshold, size_range, label_color, dpi, show_order_key,
            ))

    collisions = find_collisions(output_path, [(job[2], job[3]) for job in jobs])
    if collisions:
        shared = "; ".join(f"{path} <- {owners}" for path, owners in collisions.items())
        if strict_template or workers > 1:
            raise ConfigurationError(f"Output paths are shared by several subject/trial pairs: {shared}")
        logger.warning("Output files will be overwritten: %s", shared)

    logger.info("Plotting %d subject/trial scanpaths", len(jobs))
    if workers > 1 and len(jobs) > 1:
        with Pool(processes=workers) as p:
            results = p.starmap(plot_subject, jobs)
    else:
        results = [plot_subject(*job) for job in jobs]

    rows = [results[slot] if isinstance(slot, int) else slot for slot in slots]
    report = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    failed = report[report['status'] == 'failed']
    if not failed.empty:
        logger.error("%d of %d scanpaths failed: %s", len(failed), len(jobs),
                     ", ".join(f"{s} (trial {t})" for s, t in zip(failed['subjID'], failed['trial_num'])))
    return report


def _coerce_trials(trials: List[str], column: pd.Series) -> List[Any]:
    """Convert command-line trial numbers to the dtype of the trial column."""
    try:
        return pd.Series(trials).astype(column.dtype).tolist()
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Trial numbers {trials} do not match trial column type {column.dtype}: {e}"
        ) from e


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for the scanpath plotting pipeline.
    """
    parser = argparse.ArgumentParser(description="Eye-tracking Scanpath Plotter")
    parser.add_argument("--fixations", type=str, required=True,
                        help="Path to the fixations data file (CSV or parquet)")
    parser.add_argument("--image", type=str, required=True,
                        help="Path to the stimulus image")
    parser.add_argument("--tracker-width", type=float, required=True,
                        help="Eye-tracker screen width in pixels")
    parser.add_argument("--tracker-height", type=float, required=True,
                        help="Eye-tracker screen height in pixels")
    parser.add_argument("--trial", type=str, action="append", required=True,
                        help="Trial number to plot (can be used multiple times)")
    parser.add_argument("--output", type=str, required=True,
                        help="Output path template with {subjID} and {trial_num}")
    parser.add_argument("--overlap-threshold", type=float, default=DEFAULT_OVERLAP_THRESHOLD,
                        help="Minimum pixel distance between labelled fixations")
    parser.add_argument("--columns", type=str,
                        help="Path to a JSON mapping of raw to canonical column names")
    parser.add_argument("--dpi", type=float, default=DEFAULT_DPI,
                        help="Figure resolution")
    parser.add_argument("--order-key", action="store_true",
                        help="Draw a colour key for fixation order")
    parser.add_argument("--allow-partial-template", action="store_true",
                        help="Accept an output template missing a placeholder")
    parser.add_argument("--workers", type=int, default=1,
                        help="Number of worker processes")
    parser.add_argument("--report", type=str,
                        help="Path to save the run report (CSV)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (can be used multiple times)")

    args = parser.parse_args(argv)

    # Set up logging
    setup_logging(args.verbose)

    try:
        columns = None
        if args.columns:
            with open(args.columns, 'r') as f:
                columns = json.load(f)

        logging.info(f"Loading fixations from {args.fixations}")
        fix_data = load_fixations(args.fixations, columns)
        require_columns(fix_data, ['trialNum'])

        report = plot_eye_scan(
            fix_data=fix_data,
            image_path=args.image,
            tracker_width=args.tracker_width,
            tracker_height=args.tracker_height,
            trial_num=_coerce_trials(args.trial, fix_data['trialNum']),
            output_path=args.output,
            overlap_threshold=args.overlap_threshold,
            dpi=args.dpi,
            show_order_key=args.order_key,
            strict_template=not args.allow_partial_template,
            workers=args.workers,
        )

        if args.report:
            logging.info(f"Saving report to {args.report}")
            save_report(report, args.report)
    except Exception as e:
        logging.error(f"Error in scanpath pipeline: {e}", exc_info=not isinstance(e, ScanplotError))
        return 1

    if (report['status'] == 'failed').any():
        return 1

    logging.info("Scanpath pipeline completed successfully")
    return 0


if __name__ == "__main__":
    exit(main())
