import numpy as np
import pandas as pd
import pytest

from core.vectors import DenseVector, SparseVector
from data.generate_sample_data import generate
from data.stream_loader import PartitionedCSVLoader


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "table.csv"
    pd.DataFrame({
        "a": [1.0, 0.0, 3.0, 4.0, 0.0],
        "b": [0.0, 2.0, 0.0, 0.0, 5.0],
        "c": [7.0, 7.0, 7.0, 7.0, 7.0],
    }).to_csv(path, index=False)
    return path


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        PartitionedCSVLoader(tmp_path / "nope.csv")


def test_defaults_to_every_column(csv_file):
    loader = PartitionedCSVLoader(csv_file)
    assert loader.feature_columns == ["a", "b", "c"]
    assert loader.n_features == 3


def test_unknown_feature_column(csv_file):
    with pytest.raises(ValueError, match="not found"):
        PartitionedCSVLoader(csv_file, feature_columns=["a", "zzz"])


def test_non_numeric_column(tmp_path):
    path = tmp_path / "mixed.csv"
    pd.DataFrame({"x": [1.0, 2.0], "name": ["u", "v"]}).to_csv(path, index=False)
    with pytest.raises(ValueError, match="Non-numeric"):
        PartitionedCSVLoader(path)
    assert PartitionedCSVLoader(path, feature_columns=["x"]).n_features == 1


def test_bad_partition_size(csv_file):
    with pytest.raises(ValueError, match="partition_size"):
        PartitionedCSVLoader(csv_file, partition_size=0)


def test_partitions_dense(csv_file):
    loader = PartitionedCSVLoader(csv_file, partition_size=2)
    parts = list(loader.partitions())
    assert [len(p) for p in parts] == [2, 2, 1]
    assert all(isinstance(v, DenseVector) for p in parts for v in p)
    assert parts[1][0] == DenseVector([3.0, 0.0, 7.0])


def test_partitions_sparse(csv_file):
    loader = PartitionedCSVLoader(csv_file, partition_size=10, sparse=True)
    (part,) = list(loader.partitions())
    first = part[0]
    assert isinstance(first, SparseVector)
    np.testing.assert_array_equal(first.indices, [0, 2])
    np.testing.assert_array_equal(first.values, [1.0, 7.0])


def test_column_subset_order(csv_file):
    loader = PartitionedCSVLoader(csv_file, feature_columns=["c", "a"])
    first = next(loader.vectors())
    assert first == DenseVector([7.0, 1.0])


def test_vectors_are_reentrant(csv_file):
    loader = PartitionedCSVLoader(csv_file, partition_size=2)
    assert len(list(loader.vectors())) == 5
    assert len(list(loader.vectors())) == 5
    assert loader.count_rows() == 5


def test_generated_file_roundtrip(tmp_path):
    path = tmp_path / "gen.csv"
    df = generate(path, n_samples=120, n_features=4, seed=1)
    loader = PartitionedCSVLoader(path, partition_size=50)
    rows = np.vstack([v.values for v in loader.vectors()])
    np.testing.assert_allclose(rows, df.to_numpy())
