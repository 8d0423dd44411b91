"""
Graftmask: region-of-interest masks for imaging time series.

Submodules
----------
masking
    Mask resolution and automatic thresholding
params
    Parameter container (mask, n_rows, n_cols)
config
    Package and user TOML defaults
errors
    Error and warning categories
"""

from graftmask.errors import (
    MaskError,
    InvalidMaskType,
    UnsupportedMaskDimensionality,
    MaskDataSizeMismatch,
    UnrecognizedMaskOption,
)
from graftmask.params import GraftParams
from graftmask.masking import resolve_mask, apply_mask, restore_frames, list_methods

__version__ = "0.1.0"

__all__ = [
    "GraftParams",
    "resolve_mask",
    "apply_mask",
    "restore_frames",
    "list_methods",
    "MaskError",
    "InvalidMaskType",
    "UnsupportedMaskDimensionality",
    "MaskDataSizeMismatch",
    "UnrecognizedMaskOption",
]
