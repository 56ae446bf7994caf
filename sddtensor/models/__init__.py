"""
High-level decomposition models.

- TensorSDD: estimator wrapper around the greedy tensor SDD
"""

from sddtensor.models.sdd_model import TensorSDD

__all__ = [
    "TensorSDD",
]
