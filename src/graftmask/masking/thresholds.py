"""
Automatic thresholding of frame stacks into 2D boolean masks.

Every method takes a frame stack shaped (rows, cols, time) and returns a
boolean mask shaped (rows, cols). Methods are looked up by name through
``_METHODS``; to add one, write a function with the same signature and add
an entry there.

Available methods:
    - "sigma": pixel activity exceeds its mean by ``std_factor`` standard deviations
    - "adaptive": temporal mean image above a local (neighbourhood) threshold
    - "otsu": Otsu's threshold on activity normalized by per-pixel mean
    - "triangle": triangle threshold on the raw intensity histogram
"""

import numpy as np
from skimage.filters import threshold_local, threshold_otsu, threshold_triangle


def _check_stack(frame_stack):
    frame_stack = np.asarray(frame_stack)
    if frame_stack.ndim != 3:
        raise ValueError(
            f"Expected 3D frame stack (rows, cols, time), got {frame_stack.ndim}D "
            f"with shape {frame_stack.shape}"
        )
    if frame_stack.shape[2] == 0:
        raise ValueError("Frame stack has no time points")
    return frame_stack.astype(np.float64, copy=False)


def normalize_by_mean(frame_stack):
    """
    Divide each pixel's time series by its temporal mean.

    Pixels with zero mean are set to 0 rather than inf/nan.

    Parameters
    ----------
    frame_stack : ndarray
        Frame stack (rows, cols, time)

    Returns
    -------
    normalized : ndarray
        Float array of the same shape
    """
    frame_stack = _check_stack(frame_stack)
    mean_img = frame_stack.mean(axis=2, keepdims=True)
    normalized = np.zeros_like(frame_stack)
    np.divide(frame_stack, mean_img, out=normalized, where=mean_img != 0)
    return normalized


def sigma_threshold(frame_stack, std_factor=2.0):
    """
    Keep pixels whose activity rises above mean + std_factor * std.

    Mean and standard deviation are taken per pixel over the time axis
    (sample std, ddof=1, when there is more than one frame). A pixel is kept
    if at least one of its time points exceeds its threshold.

    Parameters
    ----------
    frame_stack : ndarray
        Frame stack (rows, cols, time)
    std_factor : float
        Number of standard deviations above the mean

    Returns
    -------
    mask : ndarray (bool)
        Mask of shape (rows, cols)
    """
    frame_stack = _check_stack(frame_stack)
    ddof = 1 if frame_stack.shape[2] > 1 else 0
    mean_img = frame_stack.mean(axis=2)
    std_img = frame_stack.std(axis=2, ddof=ddof)
    threshold = mean_img + std_factor * std_img
    return np.any(frame_stack > threshold[..., np.newaxis], axis=2)


def adaptive_threshold(frame_stack, block_size=25, method="mean", offset=0.0):
    """
    Keep pixels brighter than their neighbourhood.

    The threshold is computed locally on the temporal mean image, so it
    adapts per spatial region rather than being global.

    Parameters
    ----------
    frame_stack : ndarray
        Frame stack (rows, cols, time)
    block_size : int
        Odd size of the pixel neighbourhood used for the local threshold
    method : str
        Local weighting, passed to skimage.filters.threshold_local
        ("mean", "gaussian", "median")
    offset : float
        Constant subtracted from the local threshold

    Returns
    -------
    mask : ndarray (bool)
        Mask of shape (rows, cols)
    """
    frame_stack = _check_stack(frame_stack)
    if block_size % 2 == 0:
        raise ValueError(f"block_size must be odd, got {block_size}")
    mean_img = frame_stack.mean(axis=2)
    local_thresh = threshold_local(mean_img, block_size=block_size, method=method, offset=offset)
    return mean_img > local_thresh


def otsu_threshold(frame_stack, nbins=256):
    """
    Keep pixels whose mean-normalized activity peaks above Otsu's level.

    Each pixel's time series is divided by its temporal mean and reduced to
    its peak. Otsu's level is the global threshold that best separates the
    histogram of these peak values into background and foreground.

    Parameters
    ----------
    frame_stack : ndarray
        Frame stack (rows, cols, time)
    nbins : int
        Histogram bins

    Returns
    -------
    mask : ndarray (bool)
        Mask of shape (rows, cols)
    """
    peak_img = normalize_by_mean(frame_stack).max(axis=2)
    level = threshold_otsu(peak_img, nbins=nbins)
    return peak_img > level


def triangle_threshold(frame_stack, nbins=256):
    """
    Keep pixels whose peak intensity lies above the triangle threshold.

    The triangle method draws a line from the histogram peak to the far end
    of its longer tail and picks the bin furthest from that line. It suits
    skewed histograms where the foreground only forms a weak secondary peak.

    Parameters
    ----------
    frame_stack : ndarray
        Frame stack (rows, cols, time)
    nbins : int
        Histogram bins

    Returns
    -------
    mask : ndarray (bool)
        Mask of shape (rows, cols)
    """
    frame_stack = _check_stack(frame_stack)
    level = threshold_triangle(frame_stack, nbins=nbins)
    return frame_stack.max(axis=2) > level


# Method registry: name -> threshold function
_METHODS = {
    "sigma": sigma_threshold,
    "adaptive": adaptive_threshold,
    "otsu": otsu_threshold,
    "triangle": triangle_threshold,
}


def list_methods():
    """List available pre-computed mask methods.

    Returns
    -------
    methods : list of str
        Method names, in the order they are documented
    """
    return list(_METHODS.keys())


def get_method(name):
    """Get a threshold function by (case-insensitive) name.

    Raises
    ------
    KeyError
        If the method is not registered
    """
    key = name.strip().lower()
    if key not in _METHODS:
        raise KeyError(
            f"Mask method '{name}' not found. "
            f"Available methods: {list_methods()}"
        )
    return _METHODS[key]
