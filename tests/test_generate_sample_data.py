import numpy as np
import pytest

from data.generate_sample_data import generate, generate_defaults


def test_shape_and_columns(tmp_path):
    df = generate(tmp_path / "out" / "x.csv", n_samples=50, n_features=3, seed=0)
    assert df.shape == (50, 3)
    assert list(df.columns) == ["feature_0", "feature_1", "feature_2"]
    assert (tmp_path / "out" / "x.csv").exists()


def test_deterministic(tmp_path):
    a = generate(tmp_path / "a.csv", n_samples=30, seed=7)
    b = generate(tmp_path / "b.csv", n_samples=30, seed=7)
    np.testing.assert_array_equal(a.to_numpy(), b.to_numpy())


def test_sparsity(tmp_path):
    df = generate(tmp_path / "s.csv", n_samples=2000, n_features=5, sparsity=0.9, seed=3)
    zero_frac = float((df.to_numpy() == 0.0).mean())
    assert 0.85 < zero_frac < 0.95


def test_constant_columns(tmp_path):
    df = generate(tmp_path / "c.csv", n_samples=40, n_features=4, constant_columns=2, seed=3)
    X = df.to_numpy()
    assert np.all(X[:, 2] == X[0, 2])
    assert np.all(X[:, 3] == X[0, 3])
    assert X[:, 0].std() > 0


@pytest.mark.parametrize("kwargs", [
    dict(n_samples=1),
    dict(n_features=0),
    dict(sparsity=1.0),
    dict(sparsity=-0.1),
    dict(n_features=2, constant_columns=3),
])
def test_invalid_parameters(tmp_path, kwargs):
    with pytest.raises(ValueError):
        generate(tmp_path / "bad.csv", **kwargs)


def test_generate_defaults(tmp_path):
    paths = generate_defaults(tmp_path)
    assert set(paths) == {"basic", "sparse", "constant"}
    assert all(p.exists() for p in paths.values())
