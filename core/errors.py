"""
errors.py
─────────
Exception types raised by the standardisation pipeline.

Both are input-validation failures: they are raised immediately, carry
enough context to diagnose the offending call, and are never retried.

    DimensionMismatch      – vectors / summaries / models disagree on length
    UnsupportedVectorType  – a vector representation other than dense/sparse
"""


class DimensionMismatch(ValueError):
    """Two operands disagree on the number of columns.

    Attributes
    ----------
    expected : int
    actual   : int
    """

    def __init__(self, expected: int, actual: int, what: str = "vector"):
        self.expected = expected
        self.actual   = actual
        super().__init__(
            f"Dimension mismatch: expected {what} of size {expected}, got {actual}."
        )


class UnsupportedVectorType(TypeError):
    """A vector representation outside {DenseVector, SparseVector}."""

    def __init__(self, obj):
        self.type_name = type(obj).__name__
        super().__init__(f"Do not support vector type {self.type_name}.")
