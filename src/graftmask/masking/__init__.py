"""
Graftmask masking module.

Resolves the ``mask`` parameter against imaging data so that downstream
analysis only sees the pixels of interest.

Example usage:
    params = GraftParams.from_config(mask="otsu")
    params, _ = resolve_mask(params, stack)       # computes params.mask
    params, data = resolve_mask(params, stack)    # data is mask_pixels x time

Available pre-computed masks:
    - "sigma": activity above mean + 2 std
    - "adaptive": local threshold on the mean image
    - "otsu": Otsu's threshold on mean-normalized activity
    - "triangle": triangle threshold on raw intensities
"""

from graftmask.masking.spec import ExplicitMask, NamedMethod, Unset, parse_mask
from graftmask.masking.thresholds import (
    sigma_threshold,
    adaptive_threshold,
    otsu_threshold,
    triangle_threshold,
    list_methods,
    get_method,
)
from graftmask.masking.resolve import resolve_mask, apply_mask, validate_mask, restore_frames

__all__ = [
    "resolve_mask",
    "apply_mask",
    "validate_mask",
    "restore_frames",
    "parse_mask",
    "NamedMethod",
    "ExplicitMask",
    "Unset",
    "sigma_threshold",
    "adaptive_threshold",
    "otsu_threshold",
    "triangle_threshold",
    "list_methods",
    "get_method",
]
