import logging

import pytest

pd = pytest.importorskip("pandas")
np = pytest.importorskip("numpy")
Image = pytest.importorskip("PIL.Image")

from etl.io import load_fixations, load_stimulus, save_report
from etl.preprocess import (
    normalize_trials, rename_columns, require_columns, select_trial, split_subjects
)
from scanplot.errors import MissingFieldError, StimulusImageError


def test_load_fixations_csv_with_column_mapping(tmp_path):
    path = tmp_path / "fix.csv"
    pd.DataFrame({
        'CURRENT_FIX_X': [1.0, 2.0],
        'CURRENT_FIX_Y': [3.0, 4.0],
        'CURRENT_FIX_DURATION': [100, 200],
        'trial_num': [1, 1],
        'RECORDING_SESSION_LABEL': ['p1', 'p1'],
    }).to_csv(path, index=False)

    df = load_fixations(path, columns={
        'CURRENT_FIX_X': 'fixX',
        'CURRENT_FIX_Y': 'fixY',
        'CURRENT_FIX_DURATION': 'fixDuration',
        'RECORDING_SESSION_LABEL': 'subjID',
    })
    require_columns(df)
    assert df['trialNum'].tolist() == [1, 1]
    assert df['fixX'].tolist() == [1.0, 2.0]


def test_load_fixations_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="missing.csv"):
        load_fixations(tmp_path / "missing.csv")


def test_require_columns_names_every_missing_field(scenario_df):
    with pytest.raises(MissingFieldError) as exc:
        require_columns(scenario_df.drop(columns=['fixDuration', 'subjID']))
    assert exc.value.fields == ['fixDuration', 'subjID']
    assert "'fixDuration'" in str(exc.value)


def test_rename_columns_keeps_canonical_trial_column(scenario_df):
    df = scenario_df.assign(trial_num=[9, 9, 9])
    assert rename_columns(df)['trialNum'].tolist() == [1, 1, 1]


def test_normalize_trials():
    assert normalize_trials(1) == [1]
    assert normalize_trials("A") == ["A"]
    assert normalize_trials([2, 1, 2]) == [2, 1]


def test_split_subjects_preserves_row_order():
    df = pd.DataFrame({
        'subjID': ['B', 'A', 'B', 'A', 'B'],
        'trialNum': [1, 1, 1, 1, 2],
        'fixX': [5, 4, 3, 2, 1],
    })
    groups = split_subjects(select_trial(df, 1))
    assert [subj for subj, _ in groups] == ['B', 'A']
    assert groups[0][1]['fixX'].tolist() == [5, 3]
    assert groups[1][1]['fixX'].tolist() == [4, 2]


def test_split_subjects_keeps_rows_without_subject(caplog):
    df = pd.DataFrame({
        'subjID': ['A', None, 'A', None],
        'trialNum': [1, 1, 1, 1],
        'fixX': [1, 2, 3, 4],
    })
    with caplog.at_level(logging.WARNING, logger="etl.preprocess"):
        groups = split_subjects(df)
    assert len(groups) == 2
    assert groups[0][0] == 'A'
    assert pd.isna(groups[1][0])
    assert groups[1][1]['fixX'].tolist() == [2, 4]
    assert "2 fixation(s) have no subjID" in caplog.text


def test_load_stimulus(tmp_path):
    path = tmp_path / "img.png"
    Image.new("RGBA", (30, 20), (1, 2, 3, 255)).save(path)
    pixels = load_stimulus(path)
    assert pixels.shape == (20, 30, 4)
    assert not pixels.flags.writeable


def test_load_stimulus_errors(tmp_path):
    with pytest.raises(StimulusImageError, match="nope.png"):
        load_stimulus(tmp_path / "nope.png")

    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(StimulusImageError, match="bad.png"):
        load_stimulus(bad)


def test_save_report(tmp_path):
    df = pd.DataFrame({'subjID': ['A'], 'status': ['written']})
    save_report(df, str(tmp_path / "reports" / "report.csv"))
    assert pd.read_csv(tmp_path / "reports" / "report.csv").equals(df)
    with pytest.raises(ValueError, match="Unsupported format"):
        save_report(df, str(tmp_path / "report.xlsx"), format="xlsx")
