import numpy as np
import pandas as pd
import pytest

from core.online_summarizer import OnlineSummarizer
from data.generate_sample_data import generate
from data.stream_loader import PartitionedCSVLoader
from drivers.run_standardize import main, run_standardize


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "sample.csv"
    generate(path, n_samples=400, n_features=3, constant_columns=1, seed=9)
    return path


def test_run_standardize_writes_output(sample_csv, tmp_path):
    out = tmp_path / "out" / "std.csv"
    result = run_standardize(
        sample_csv, out, with_mean=True, partition_size=50, split_every=2, n_jobs=2
    )
    assert result["n_partitions"] == 8
    assert result["total_rows"] == 400

    df = pd.read_csv(out)
    assert list(df.columns) == ["feature_0", "feature_1", "feature_2"]
    X = df.to_numpy()
    np.testing.assert_allclose(X[:, :2].mean(axis=0), 0.0, atol=1e-9)
    np.testing.assert_allclose(X[:, :2].std(axis=0, ddof=1), 1.0, rtol=1e-6)
    assert np.all(X[:, 2] == 0.0)


def test_run_standardize_without_output(sample_csv):
    result = run_standardize(sample_csv, None, sparse=True)
    assert result["output_path"] is None
    assert result["model"].with_mean is False


def test_main_cli(sample_csv, tmp_path, capsys):
    out = tmp_path / "cli.csv"
    code = main(["--csv", str(sample_csv), "--output", str(out), "--with-mean", "--partition-size", "64"])
    assert code == 0
    assert out.exists()
    assert "STANDARDISATION REPORT" in capsys.readouterr().out


def test_main_missing_file(tmp_path, capsys):
    assert main(["--csv", str(tmp_path / "missing.csv")]) == 1
    assert "file not found" in capsys.readouterr().err


def test_run_standardize_appends_chunks_in_order(sample_csv, tmp_path):
    out = tmp_path / "std.csv"
    for _ in range(2):
        result = run_standardize(sample_csv, out, with_mean=True, partition_size=64)
    assert result["n_partitions"] == 7
    assert result["total_rows"] == 400

    model = result["model"]
    X_in = pd.read_csv(sample_csv).to_numpy()
    X_out = pd.read_csv(out).to_numpy()
    # a rerun overwrites, and the header is written only once
    assert X_out.shape == (400, 3)
    np.testing.assert_allclose(X_out, (X_in - model.mean.values) * model.factor, atol=1e-12)


def test_run_standardize_fits_while_reading(sample_csv, monkeypatch):
    original_partitions = PartitionedCSVLoader.partitions
    original_add = OnlineSummarizer.add
    produced = {"n": 0}
    seen_at_add = []

    def tracked_partitions(self):
        for part in original_partitions(self):
            produced["n"] += 1
            yield part

    def tracked_add(self, vector):
        seen_at_add.append(produced["n"])
        return original_add(self, vector)

    monkeypatch.setattr(PartitionedCSVLoader, "partitions", tracked_partitions)
    monkeypatch.setattr(OnlineSummarizer, "add", tracked_add)
    result = run_standardize(sample_csv, None, partition_size=50)
    assert result["n_partitions"] == 8
    # the first vector is folded before the second chunk is read
    assert seen_at_add[0] == 1
