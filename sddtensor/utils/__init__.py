"""
Utility functions for tensor SDD.

This module provides helper functions for:
- Tensor canonicalization and validation
- Mode vector validation
- Factor matrix stacking
"""

from sddtensor.utils.shapes import (
    canonicalize_tensor,
    stack_factors,
    term_vectors,
    validate_mode_index,
    validate_mode_vectors,
)

__all__ = [
    "canonicalize_tensor",
    "stack_factors",
    "term_vectors",
    "validate_mode_index",
    "validate_mode_vectors",
]
