"""
Output path templating for per-subject scanpath images.
"""
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Tuple

from scanplot.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUBJECT_PLACEHOLDER = "{subjID}"
TRIAL_PLACEHOLDER = "{trial_num}"


def validate_template(template: str, strict: bool = True) -> None:
    """
    Check that an output path template names both subject and trial.

    Parameters:
    -----------
    template : str
        Output path containing '{subjID}' and '{trial_num}'
    strict : bool, optional
        Raise on a missing placeholder instead of warning, by default True

    Raises:
    -------
    ConfigurationError
        If ``strict`` and a placeholder is missing
    """
    missing = [p for p in (SUBJECT_PLACEHOLDER, TRIAL_PLACEHOLDER) if p not in str(template)]
    if not missing:
        return
    msg = (f"Output path template {str(template)!r} is missing placeholder(s) "
           f"{', '.join(missing)}; images would overwrite each other")
    if strict:
        raise ConfigurationError(msg)
    logger.warning(msg)


def resolve_output_path(template: str, subj_id: Any, trial_num: Any) -> str:
    """Substitute subject ID and trial number into ``template``."""
    return (str(template)
            .replace(SUBJECT_PLACEHOLDER, str(subj_id))
            .replace(TRIAL_PLACEHOLDER, str(trial_num)))


def find_collisions(template: str,
                    pairs: Iterable[Tuple[Any, Any]]) -> Dict[str, List[Tuple[Any, Any]]]:
    """Resolved paths shared by more than one (subject, trial) pair."""
    targets = defaultdict(list)
    for subj_id, trial_num in pairs:
        targets[resolve_output_path(template, subj_id, trial_num)].append((subj_id, trial_num))
    return {path: owners for path, owners in targets.items() if len(owners) > 1}
