"""
Functions that extend Numpy functionality
"""
import numpy as np

def count_true(mask):
    return int(np.count_nonzero(mask))

def flatten_frames(stack):
    """
    Collapse the two spatial axes of a (rows, cols, time) stack into one.

    Pixels are ordered row-major, matching ``mask.ravel()``.

    Parameters
    ----------
    stack : ndarray
        Frame stack with shape (rows, cols, time)

    Returns
    -------
    flat : ndarray
        Array with shape (rows * cols, time)
    """
    stack = np.asarray(stack)
    if stack.ndim != 3:
        raise ValueError(f"Expected 3D frame stack (rows, cols, time), got {stack.ndim}D")
    return stack.reshape(stack.shape[0] * stack.shape[1], stack.shape[2])

def unflatten_pixels(flat, n_rows, n_cols):
    # Inverse of flatten_frames, keeps any trailing axes
    flat = np.asarray(flat)
    return flat.reshape((n_rows, n_cols) + flat.shape[1:])
