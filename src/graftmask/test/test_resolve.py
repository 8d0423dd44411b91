import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).parents[2]))

import unittest
import warnings
from unittest import mock
import numpy as np

from graftmask import (
    GraftParams,
    InvalidMaskType,
    MaskDataSizeMismatch,
    MaskError,
    UnrecognizedMaskOption,
    UnsupportedMaskDimensionality,
)
from graftmask.masking import apply_mask, resolve_mask, restore_frames

from test_utilities import MockParams, create_indexed_stack, create_mock_stack


class TestExplicitMask(unittest.TestCase):

    def setUp(self):
        self.stack = create_indexed_stack(4, 5, 6)
        self.mask = np.zeros((4, 5), dtype=bool)
        self.mask[0, 1] = True
        self.mask[2, 3] = True
        self.mask[3, 0] = True

    def test_diagonal_example(self):
        """2x2 diagonal mask on a 2x2x3 stack keeps two pixel rows"""
        data = np.arange(12, dtype=float).reshape(2, 2, 3)
        params = GraftParams(mask=np.array([[True, False], [False, True]]))

        params, masked = resolve_mask(params, data)

        self.assertEqual(masked.shape, (2, 3))
        np.testing.assert_array_equal(masked[0], data[0, 0])
        np.testing.assert_array_equal(masked[1], data[1, 1])
        self.assertEqual((params.n_rows, params.n_cols), (2, 2))

    def test_frame_stack_rows_match_pixels(self):
        params, masked = resolve_mask(GraftParams(mask=self.mask), self.stack)

        self.assertEqual(masked.shape, (3, 6))
        rows, cols = np.nonzero(self.mask)  # row-major order
        for i, (r, c) in enumerate(zip(rows, cols)):
            np.testing.assert_array_equal(masked[i], self.stack[r, c, :])

    def test_sets_rows_and_cols(self):
        params, _ = resolve_mask(GraftParams(mask=self.mask), self.stack)
        self.assertEqual(params.n_rows, 4)
        self.assertEqual(params.n_cols, 5)
        self.assertEqual(params.mask.dtype, np.bool_)

    def test_flattened_pixels_by_time(self):
        flat = self.stack.reshape(20, 6)
        _, masked = resolve_mask(GraftParams(mask=self.mask), flat)
        _, expected = resolve_mask(GraftParams(mask=self.mask), self.stack)
        np.testing.assert_array_equal(masked, expected)

    def test_already_masked_passes_through(self):
        _, masked = resolve_mask(GraftParams(mask=self.mask), self.stack)
        params, again = resolve_mask(GraftParams(mask=self.mask), masked)
        self.assertIs(again, masked)
        self.assertEqual((params.n_rows, params.n_cols), (4, 5))

    def test_size_mismatch_reports_shapes(self):
        bad = np.zeros((7, 6))
        with self.assertRaises(MaskDataSizeMismatch) as ctx:
            resolve_mask(GraftParams(mask=self.mask), bad)
        message = str(ctx.exception)
        self.assertIn("(4, 5)", message)
        self.assertIn("(7, 6)", message)
        self.assertEqual(ctx.exception.mask_shape, (4, 5))
        self.assertEqual(ctx.exception.data_shape, (7, 6))

    def test_mismatch_is_value_error(self):
        with self.assertRaises(ValueError):
            resolve_mask(GraftParams(mask=self.mask), np.zeros((2, 2, 6)))

    def test_data_not_modified(self):
        before = self.stack.copy()
        resolve_mask(GraftParams(mask=self.mask), self.stack)
        np.testing.assert_array_equal(self.stack, before)

    def test_nested_list_of_bools(self):
        params = GraftParams(mask=[[True, False], [False, True]])
        params, masked = resolve_mask(params, np.ones((2, 2, 4)))
        self.assertIsInstance(params.mask, np.ndarray)
        self.assertEqual(masked.shape, (2, 4))

    def test_singleton_plane_squeezed(self):
        params = GraftParams(mask=self.mask[:, :, np.newaxis])
        params, masked = resolve_mask(params, self.stack)
        self.assertEqual(params.mask.shape, (4, 5))
        self.assertEqual(masked.shape, (3, 6))

    def test_plain_parameter_object(self):
        params, masked = resolve_mask(MockParams(mask=self.mask), self.stack)
        self.assertEqual((params.n_rows, params.n_cols), (4, 5))
        self.assertEqual(masked.shape, (3, 6))


class TestMaskErrors(unittest.TestCase):

    def test_non_boolean_mask(self):
        for mask in (np.eye(3), np.eye(3, dtype=int), [[1, 0], [0, 1]]):
            with self.subTest(dtype=np.asarray(mask).dtype):
                with self.assertRaises(InvalidMaskType):
                    resolve_mask(GraftParams(mask=mask), np.ones((3, 3, 4)))

    def test_invalid_type_is_type_error(self):
        with self.assertRaises(TypeError):
            resolve_mask(GraftParams(mask=np.eye(2)), np.ones((2, 2, 4)))

    def test_3d_mask_rejected(self):
        mask = np.ones((3, 3, 2), dtype=bool)
        with self.assertRaises(UnsupportedMaskDimensionality):
            resolve_mask(GraftParams(mask=mask), np.ones((3, 3, 4)))

    def test_1d_mask_rejected(self):
        with self.assertRaises(UnsupportedMaskDimensionality):
            resolve_mask(GraftParams(mask=np.ones(9, dtype=bool)), np.ones((9, 4)))

    def test_invalid_type_leaves_params_untouched(self):
        original = np.eye(3)
        params = GraftParams(mask=original)
        result = None
        with self.assertRaises(InvalidMaskType):
            result = resolve_mask(params, np.ones((3, 3, 4)))
        self.assertIsNone(result)
        self.assertIs(params.mask, original)
        self.assertIsNone(params.n_rows)
        self.assertIsNone(params.n_cols)

    def test_3d_mask_leaves_params_untouched(self):
        original = np.ones((3, 3, 2), dtype=bool)
        params = GraftParams(mask=original)
        result = None
        with self.assertRaises(UnsupportedMaskDimensionality):
            result = resolve_mask(params, np.ones((3, 3, 4)))
        self.assertIsNone(result)
        self.assertIs(params.mask, original)
        self.assertIsNone(params.n_rows)
        self.assertIsNone(params.n_cols)

    def test_size_mismatch_only_sets_extents(self):
        """Extents are derived before reconciling, the mask itself is kept as given"""
        original = np.eye(3, dtype=bool)
        params = GraftParams(mask=original)
        result = None
        with self.assertRaises(MaskDataSizeMismatch):
            result = resolve_mask(params, np.zeros((7, 2)))
        self.assertIsNone(result)
        self.assertIs(params.mask, original)
        self.assertEqual((params.n_rows, params.n_cols), (3, 3))
        self.assertIsNone(params.mask_method)

    def test_errors_share_base_class(self):
        for error in (InvalidMaskType, UnsupportedMaskDimensionality, MaskDataSizeMismatch):
            self.assertTrue(issubclass(error, MaskError))


class TestUnsetAndUnrecognized(unittest.TestCase):

    def test_empty_mask_is_noop(self):
        for mask in ([], None, np.array([]), np.zeros((0, 0), dtype=bool)):
            params = GraftParams(mask=mask)
            with warnings.catch_warnings():
                warnings.simplefilter("error")
                out, masked = resolve_mask(params, np.ones((3, 3, 4)))
            self.assertIs(out, params)
            self.assertIsNone(masked)
            self.assertIsNone(out.n_rows)
            self.assertIsNone(out.n_cols)

    def test_unrecognized_name_warns_and_resets(self):
        for name in ("gaussian", "OTSU2", ""):
            params = GraftParams(mask=name)
            with self.assertWarns(UnrecognizedMaskOption) as ctx:
                params, masked = resolve_mask(params, np.ones((3, 3, 4)))
            self.assertIsNone(params.mask)
            self.assertIsNone(masked)
            message = str(ctx.warning)
            self.assertIn(f"'{name}'", message)
            for option in ("sigma", "adaptive", "otsu", "triangle"):
                self.assertIn(option, message)

    def test_warning_can_be_escalated(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", UnrecognizedMaskOption)
            with self.assertRaises(UnrecognizedMaskOption):
                resolve_mask(GraftParams(mask="nope"), np.ones((3, 3, 4)))


class TestNamedMethod(unittest.TestCase):

    def test_otsu_example(self):
        rng = np.random.default_rng(1)
        data = rng.random((10, 10, 50))
        params, masked = resolve_mask(GraftParams(mask="otsu"), data)
        self.assertIsNone(masked)
        self.assertIsInstance(params.mask, np.ndarray)
        self.assertEqual(params.mask.shape, (10, 10))
        self.assertEqual(params.mask.dtype, np.bool_)
        self.assertEqual((params.n_rows, params.n_cols), (10, 10))
        self.assertEqual(params.mask_method, "otsu")

    def test_case_insensitive(self):
        stack, roi = create_mock_stack()
        for name in ("Sigma", "SIGMA", " sigma "):
            params, masked = resolve_mask(GraftParams(mask=name), stack)
            self.assertIsNone(masked)
            np.testing.assert_array_equal(params.mask, roi)

    def test_every_method_finds_active_block(self):
        stack, roi = create_mock_stack()
        for name in ("sigma", "adaptive", "otsu", "triangle"):
            with self.subTest(method=name):
                params, masked = resolve_mask(GraftParams.from_config(mask=name), stack)
                self.assertIsNone(masked)
                np.testing.assert_array_equal(params.mask, roi)

    def test_second_pass_flattens(self):
        stack, roi = create_mock_stack()
        params, _ = resolve_mask(GraftParams(mask="triangle"), stack)
        params, masked = resolve_mask(params, stack)
        self.assertEqual(masked.shape, (roi.sum(), stack.shape[2]))
        self.assertEqual(params.mask_method, "triangle")

    def test_named_method_records_through_mark_mask(self):
        stack, roi = create_mock_stack()
        params = GraftParams(mask="adaptive")
        with mock.patch.object(GraftParams, "mark_mask", autospec=True,
                               side_effect=GraftParams.mark_mask) as marked:
            params, _ = resolve_mask(params, stack)
        marked.assert_called_once()
        self.assertEqual(marked.call_args.kwargs["method"], "adaptive")
        np.testing.assert_array_equal(params.mask, roi)
        self.assertEqual(params.mask_method, "adaptive")

    def test_named_method_on_plain_object(self):
        stack, roi = create_mock_stack()
        params, masked = resolve_mask(MockParams(mask="otsu"), stack)
        self.assertIsNone(masked)
        np.testing.assert_array_equal(params.mask, roi)
        self.assertEqual((params.n_rows, params.n_cols), (10, 10))

    def test_named_method_needs_frame_stack(self):
        with self.assertRaises(ValueError):
            resolve_mask(GraftParams(mask="sigma"), np.ones((100, 50)))

    def test_verbose_prints(self):
        import io
        from contextlib import redirect_stdout

        stack, _ = create_mock_stack()
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            resolve_mask(GraftParams(mask="sigma"), stack, verbose=True)
        self.assertIn("9 of 100 pixels", buffer.getvalue())


class TestApplyAndRestore(unittest.TestCase):

    def test_apply_matches_resolve(self):
        stack = create_indexed_stack(3, 4, 5)
        mask = np.zeros((3, 4), dtype=bool)
        mask[1, 1:3] = True
        _, resolved = resolve_mask(GraftParams(mask=mask.copy()), stack)
        np.testing.assert_array_equal(apply_mask(mask, stack), resolved)

    def test_restore_frames_inverts_masking(self):
        stack = create_indexed_stack(3, 4, 5)
        mask = np.zeros((3, 4), dtype=bool)
        mask[0, 0] = mask[2, 3] = True
        frames = restore_frames(apply_mask(mask, stack), mask)
        self.assertEqual(frames.shape, stack.shape)
        np.testing.assert_array_equal(frames[mask], stack[mask])
        self.assertTrue(np.all(frames[~mask] == 0))

    def test_restore_vector_with_nan_fill(self):
        mask = np.array([[True, False], [False, True]])
        image = restore_frames(np.array([1.5, 2.5]), mask, fill_value=np.nan)
        self.assertEqual(image.shape, (2, 2))
        self.assertEqual(image[0, 0], 1.5)
        self.assertEqual(image[1, 1], 2.5)
        self.assertTrue(np.isnan(image[0, 1]))

    def test_restore_keeps_dtype(self):
        mask = np.array([[True, False], [False, True]])
        flags = restore_frames(np.array([[True, False], [True, True]]), mask)
        self.assertEqual(flags.dtype, np.bool_)
        self.assertFalse(flags[0, 1].any())
        np.testing.assert_array_equal(flags[1, 1], [True, True])

        counts = restore_frames(np.array([3, 4], dtype=np.int16), mask, fill_value=-1)
        self.assertEqual(counts.dtype, np.int16)
        self.assertEqual(counts[0, 1], -1)

    def test_restore_widens_dtype_for_fill(self):
        mask = np.array([[True, False], [False, True]])
        image = restore_frames(np.array([3, 4], dtype=np.int16), mask, fill_value=np.nan)
        self.assertEqual(image.dtype.kind, "f")
        self.assertTrue(np.isnan(image[0, 1]))
        self.assertEqual(image[1, 1], 4)

    def test_restore_wrong_length(self):
        mask = np.array([[True, False], [False, True]])
        with self.assertRaises(MaskDataSizeMismatch):
            restore_frames(np.zeros((3, 4)), mask)


if __name__ == "__main__":
    unittest.main()
