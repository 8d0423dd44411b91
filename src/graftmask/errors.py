"""
Errors and warnings raised while resolving masks.

Fatal problems (wrong mask type, wrong dimensionality, mask and data that
cannot be reconciled) raise subclasses of ``MaskError``. An unrecognized
pre-computed method name is not fatal: it is reported with the
``UnrecognizedMaskOption`` warning category and the mask is reset.
"""


class MaskError(ValueError):
    """Base class for unrecoverable mask resolution errors."""


class InvalidMaskType(MaskError, TypeError):
    """Explicit mask is not a boolean array."""


class UnsupportedMaskDimensionality(MaskError):
    """Mask has more than one plane (or is otherwise not 2D)."""


class MaskDataSizeMismatch(MaskError):
    """None of the supported mask/data layouts apply.

    Attributes
    ----------
    mask_shape : tuple
        Shape of the mask as (n_rows, n_cols)
    data_shape : tuple
        Shape of the data array the mask was checked against
    """

    def __init__(self, message, mask_shape=None, data_shape=None):
        super().__init__(message)
        self.mask_shape = mask_shape
        self.data_shape = data_shape


class UnrecognizedMaskOption(UserWarning):
    """Pre-computed mask name is not one of the supported methods."""


__all__ = [
    "MaskError",
    "InvalidMaskType",
    "UnsupportedMaskDimensionality",
    "MaskDataSizeMismatch",
    "UnrecognizedMaskOption",
]
