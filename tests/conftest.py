import os

os.environ["MPLBACKEND"] = "Agg"

import pytest  # noqa: E402

pd = pytest.importorskip("pandas")
Image = pytest.importorskip("PIL.Image")


@pytest.fixture
def stimulus_path(tmp_path):
    """960x540 grey stimulus image (half of a 1920x1080 tracker screen)."""
    path = tmp_path / "stimulus.png"
    Image.new("RGB", (960, 540), (200, 200, 200)).save(path)
    return path


@pytest.fixture
def scenario_df():
    """Subject A, trial 1: two crowded fixations and one far away."""
    return pd.DataFrame({
        'subjID': ['A', 'A', 'A'],
        'trialNum': [1, 1, 1],
        'fixX': [100.0, 110.0, 900.0],
        'fixY': [100.0, 105.0, 500.0],
        'fixDuration': [200.0, 400.0, 600.0],
    })


@pytest.fixture
def multi_df():
    """Three subjects over two trials, four fixations each."""
    rows = []
    for trial in (1, 2):
        for subj in ('S1', 'S2', 'S3'):
            for k in range(4):
                rows.append({
                    'subjID': subj,
                    'trialNum': trial,
                    'fixX': 200.0 * k + 50,
                    'fixY': 100.0 * k + 40,
                    'fixDuration': 100.0 + 50 * k,
                })
    return pd.DataFrame(rows)
