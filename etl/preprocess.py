"""
Fixation table preparation: column naming, validation, trial and subject selection.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from scanplot.errors import MissingFieldError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['fixX', 'fixY', 'fixDuration', 'trialNum', 'subjID']

# Column names accepted in place of the canonical ones
COLUMN_ALIASES = {
    'trial_num': 'trialNum',
}


def rename_columns(df: pd.DataFrame, columns: Optional[Dict[str, str]] = None) -> pd.DataFrame:
    """
    Rename raw export columns to the canonical fixation column names.

    Parameters:
    -----------
    df : pd.DataFrame
        Fixation data
    columns : Optional[Dict[str, str]], optional
        Mapping of raw column name to canonical name, by default None

    Returns:
    --------
    pd.DataFrame
        Data with canonical column names
    """
    mapping = dict(columns or {})
    for alias, canonical in COLUMN_ALIASES.items():
        if alias in df.columns and canonical not in df.columns and canonical not in mapping.values():
            mapping[alias] = canonical
    if not mapping:
        return df
    logger.debug('rename_columns mapping: %s', mapping)
    return df.rename(columns=mapping)


def require_columns(df: pd.DataFrame, columns: Iterable[str] = REQUIRED_COLUMNS) -> None:
    """Raise MissingFieldError naming every absent column."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingFieldError(missing)


def normalize_trials(trials: Any) -> List[Any]:
    """Trial numbers as a list, keeping order and dropping duplicates."""
    if isinstance(trials, (str, bytes)) or not isinstance(trials, Iterable):
        trials = [trials]
    seen = []
    for trial in trials:
        if trial not in seen:
            seen.append(trial)
    return seen


def select_trial(df: pd.DataFrame, trial_num: Any) -> pd.DataFrame:
    """Rows of one trial, in input order."""
    return df[df['trialNum'] == trial_num]


def split_subjects(df: pd.DataFrame) -> List[Tuple[Any, pd.DataFrame]]:
    """
    Partition one trial's fixations by subject.

    Subjects come in order of first appearance and each subject's rows keep
    their input order, which is the fixation order. Rows without a subject ID
    are kept together as one group keyed by NaN.

    Parameters:
    -----------
    df : pd.DataFrame
        Fixations of a single trial

    Returns:
    --------
    List[Tuple[Any, pd.DataFrame]]
        (subjID, fixations) pairs
    """
    n_missing = int(df['subjID'].isna().sum())
    if n_missing:
        logger.warning('%d fixation(s) have no subjID and are plotted as one group', n_missing)
    return [
        (subj_id, group.reset_index(drop=True))
        for subj_id, group in df.groupby('subjID', sort=False, dropna=False)
    ]
