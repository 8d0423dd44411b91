"""
Mask resolution: turn the ``mask`` parameter into a 2D boolean mask and,
for explicit masks, a (mask_pixels x time) data matrix.

Accepted mask options
---------------------
(1) Explicit mask - a 2D boolean array (rows x cols). The data is checked
    against it and returned as mask_pixels x time. Three data layouts are
    understood, tried in order:
        a. rows x cols x time (frame stack)
        b. (rows * cols) x time (flattened, row-major)
        c. mask_pixels x time (mask already applied, returned as-is)
(2) Pre-computed mask - a method name, one of "sigma", "adaptive", "otsu",
    "triangle" (case-insensitive). The mask is computed from a frame stack
    and stored in the params, but the data is NOT flattened here; apply the
    stored mask in a second pass (``resolve_mask`` again, or ``apply_mask``).
(3) Nothing - None, [] or an empty array. Params are returned untouched.

An unrecognized method name is not fatal: an ``UnrecognizedMaskOption``
warning is issued and the mask is reset to None so the pipeline can run
unmasked.
"""

import warnings

import numpy as np

from graftmask.errors import (
    InvalidMaskType,
    MaskDataSizeMismatch,
    UnrecognizedMaskOption,
    UnsupportedMaskDimensionality,
)
from graftmask.masking.spec import ExplicitMask, NamedMethod, Unset, parse_mask
from graftmask.masking.thresholds import _METHODS, list_methods
from graftmask.np_ext import count_true, flatten_frames, unflatten_pixels


__all__ = [
    "resolve_mask",
    "apply_mask",
    "validate_mask",
    "restore_frames",
]


def validate_mask(mask):
    """
    Check that an explicit mask is a single 2D boolean plane.

    Parameters
    ----------
    mask : array-like
        Non-empty candidate mask

    Returns
    -------
    mask : ndarray (bool)
        2D mask (a trailing singleton plane is squeezed away)

    Raises
    ------
    InvalidMaskType
        If the mask is not boolean
    UnsupportedMaskDimensionality
        If the mask has more than one plane or is not 2D
    """
    mask = np.asarray(mask)
    if mask.dtype != np.bool_:
        raise InvalidMaskType(
            f"Mask not binary (dtype {mask.dtype}). "
            "Mask must be boolean; convert it with mask.astype(bool) and try again."
        )
    if mask.ndim == 3:
        if mask.shape[2] != 1:
            raise UnsupportedMaskDimensionality(
                f"3D mask not supported (shape {mask.shape})"
            )
        mask = mask[:, :, 0]
    if mask.ndim != 2:
        raise UnsupportedMaskDimensionality(
            f"Mask must be 2D (rows x cols), got {mask.ndim}D with shape {mask.shape}"
        )
    return mask


def apply_mask(mask, data):
    """
    Select the mask pixels from data, whatever its layout.

    Parameters
    ----------
    mask : ndarray (bool)
        2D mask (rows x cols)
    data : ndarray
        rows x cols x time, (rows * cols) x time, or mask_pixels x time

    Returns
    -------
    masked : ndarray
        mask_pixels x time. When data is already mask_pixels x time the
        same object is returned.

    Raises
    ------
    MaskDataSizeMismatch
        If data fits none of the three layouts
    """
    mask = validate_mask(mask)
    data = np.asarray(data)
    n_rows, n_cols = mask.shape
    flat_mask = mask.ravel()

    if data.ndim == 3 and data.shape[0] == n_rows and data.shape[1] == n_cols:
        # rows x cols x time
        return flatten_frames(data)[flat_mask]
    elif data.ndim >= 1 and data.shape[0] == n_rows * n_cols:
        # (rows * cols) x time
        return data[flat_mask]
    elif data.ndim >= 1 and data.shape[0] == count_true(mask):
        # mask already applied
        return data
    else:
        raise MaskDataSizeMismatch(
            "Sizes of mask and data input do not match.\n"
            f"Mask: {mask.shape} (n_rows={n_rows}, n_cols={n_cols}, "
            f"{count_true(mask)} pixels)\n"
            f"Data size: {data.shape}",
            mask_shape=(n_rows, n_cols),
            data_shape=data.shape,
        )


def _fill_dtype(dtype, fill_value):
    # Keep dtype when fill_value is representable in it
    try:
        exact = bool(dtype.type(fill_value) == fill_value)
    except (TypeError, ValueError, OverflowError):
        exact = False
    if exact or (dtype.kind in "fc" and isinstance(fill_value, float) and np.isnan(fill_value)):
        return dtype
    return np.result_type(dtype, np.min_scalar_type(fill_value))


def restore_frames(masked, mask, fill_value=0):
    """
    Place mask_pixels x time values back into full frames.

    Parameters
    ----------
    masked : ndarray
        mask_pixels x time matrix, or a mask_pixels vector
    mask : ndarray (bool)
        2D mask the values were selected with
    fill_value : scalar
        Value for pixels outside the mask (e.g. 0 or np.nan)

    Returns
    -------
    frames : ndarray
        rows x cols x time (or rows x cols for vector input)
    """
    mask = validate_mask(mask)
    masked = np.asarray(masked)
    n_pixels = count_true(mask)
    if masked.ndim == 0 or masked.shape[0] != n_pixels:
        raise MaskDataSizeMismatch(
            f"Expected {n_pixels} mask pixels along the first axis, got shape {masked.shape}",
            mask_shape=mask.shape,
            data_shape=masked.shape,
        )
    dtype = _fill_dtype(masked.dtype, fill_value)
    flat = np.full((mask.size,) + masked.shape[1:], fill_value, dtype=dtype)
    flat[mask.ravel()] = masked
    return unflatten_pixels(flat, *mask.shape)


def _threshold_options(params, method):
    # Plain parameter objects carry no config defaults
    getter = getattr(params, "threshold_options", None)
    return getter(method) if getter is not None else {}


def _set_mask(params, mask, method=None):
    if hasattr(params, "mark_mask"):
        params.mark_mask(mask, method=method)
        return
    params.mask = mask
    params.n_rows, params.n_cols = (int(n) for n in mask.shape)
    if hasattr(params, "mask_method"):
        params.mask_method = method


def resolve_mask(params, data, verbose=False):
    """
    Resolve ``params.mask`` against a data array.

    Parameters
    ----------
    params : GraftParams or object
        Anything with ``mask``, ``n_rows`` and ``n_cols`` attributes.
        Updated in place.
    data : ndarray
        rows x cols x time, or pixels x time. Never modified.
    verbose : bool
        If True, print what was resolved

    Returns
    -------
    params : GraftParams or object
        The same params object, with ``mask`` a 2D boolean array (or None)
        and ``n_rows``/``n_cols`` set
    masked : ndarray or None
        mask_pixels x time matrix for explicit masks, None otherwise

    Raises
    ------
    InvalidMaskType
        Explicit mask is not boolean
    UnsupportedMaskDimensionality
        Explicit mask is 3D with more than one plane
    MaskDataSizeMismatch
        Explicit mask does not fit the data in any supported layout
    ValueError
        A pre-computed method was requested but data is not a frame stack

    Examples
    --------
    >>> params = GraftParams(mask=np.array([[True, False], [False, True]]))
    >>> params, masked = resolve_mask(params, np.arange(12).reshape(2, 2, 3))
    >>> masked.shape
    (2, 3)

    >>> params = GraftParams.from_config(mask="otsu")
    >>> params, masked = resolve_mask(params, stack)  # masked is None
    >>> params, masked = resolve_mask(params, stack)  # now flattened
    """
    match parse_mask(params.mask):
        case Unset():
            return params, None

        case NamedMethod(name=name, raw=raw) if name not in _METHODS:
            warnings.warn(
                f"Selection for mask '{raw}' not recognized.\n"
                "Currently only supports the following options for "
                f"pre-computed masks: {', '.join(list_methods())}",
                UnrecognizedMaskOption,
                stacklevel=2,
            )
            params.mask = None
            return params, None

        case NamedMethod(name=name):
            method = _METHODS[name]
            options = _threshold_options(params, name)
            mask = method(data, **options)
            _set_mask(params, mask, method=name)
            if verbose:
                print(
                    f"Computed '{name}' mask: {count_true(mask)} of {mask.size} pixels "
                    f"({params.n_rows} x {params.n_cols})"
                )
            return params, None

        case ExplicitMask(array=array):
            mask = validate_mask(array)
            params.n_rows, params.n_cols = (int(n) for n in mask.shape)
            masked = apply_mask(mask, data)
            params.mask = mask
            if verbose:
                print(f"Applied mask: data {np.shape(data)} -> {masked.shape}")
            return params, masked
