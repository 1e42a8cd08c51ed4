import os
import tempfile
import numpy as np
import unittest as ut
from unittest import mock

from blackfly.imaging import to_ndarray, write_image, show_image
from blackfly._spinnaker import CameraError

from tests.unit.fakes import FakeImage

class TestConversion(ut.TestCase):
    """
    """

    def test_unpadded_image(self):
        image = FakeImage(width=4, height=3)
        frame = to_ndarray(image)
        self.assertEqual(frame.shape, (3, 4))
        self.assertTrue(np.array_equal(frame, np.arange(12, dtype=np.uint8).reshape(3, 4)))

    def test_padding_is_kept(self):
        """
        The container is sized to include the x and y padding
        """

        image = FakeImage(width=4, height=3, xpadding=2, ypadding=1)
        frame = to_ndarray(image)

        self.assertEqual(frame.shape, (4, 6))
        self.assertTrue(np.array_equal(frame, np.arange(24, dtype=np.uint8).reshape(4, 6)))

        return

    def test_rows_are_stride_bytes_apart(self):
        """
        """

        image = FakeImage(width=3, height=2, stride=5)
        frame = to_ndarray(image)

        expected = np.array([[0, 1, 2], [5, 6, 7]], dtype=np.uint8)
        self.assertTrue(np.array_equal(frame, expected))

        return

    def test_color_image(self):
        image = FakeImage(width=2, height=2, channels=3)
        frame = to_ndarray(image)
        self.assertEqual(frame.shape, (2, 2, 3))
        self.assertTrue(np.array_equal(frame[1, 0], [6, 7, 8]))

    def test_frame_is_a_copy(self):
        """
        Disposing of the image buffer does not corrupt the frame
        """

        image = FakeImage(width=4, height=3)
        frame = to_ndarray(image)
        image.data[:] = 255

        self.assertEqual(frame[0, 0], 0)
        self.assertFalse(np.shares_memory(frame, image.data))

        return

    def test_buffer_too_small(self):
        image = FakeImage(width=4, height=3, data=np.zeros(8, dtype=np.uint8))
        with self.assertRaises(CameraError):
            to_ndarray(image)

    def test_row_wider_than_stride(self):
        image = FakeImage(width=4, height=3, stride=2, data=np.zeros(12, dtype=np.uint8))
        with self.assertRaises(CameraError):
            to_ndarray(image)

class TestWriting(ut.TestCase):

    def test_write_numpy_file(self):
        """
        """

        frame = np.random.randint(low=0, high=255, size=(10, 12), dtype=np.uint8)

        with tempfile.TemporaryDirectory() as directory:
            filename = os.path.join(directory, 'frame.npy')
            write_image(filename, frame)
            self.assertTrue(os.path.exists(filename))
            self.assertTrue(np.array_equal(np.load(filename), frame))

        return

    def test_write_color_image(self):
        """
        Colour frames are converted to BGR before OpenCV writes them
        """

        cv = mock.MagicMock()
        cv.imwrite.return_value = True
        frame = np.zeros((4, 6, 3), dtype=np.uint8)

        with mock.patch.dict('sys.modules', {'cv2': cv}):
            write_image('frame.png', frame)

        cv.cvtColor.assert_called_once_with(frame, cv.COLOR_RGB2BGR)
        cv.imwrite.assert_called_once_with('frame.png', cv.cvtColor.return_value)

        return

    def test_write_failure(self):
        cv = mock.MagicMock()
        cv.imwrite.return_value = False
        with mock.patch.dict('sys.modules', {'cv2': cv}):
            with self.assertRaises(CameraError):
                write_image('frame.png', np.zeros((4, 6), dtype=np.uint8))

    def test_write_to_missing_directory(self):
        with tempfile.TemporaryDirectory() as directory:
            filename = os.path.join(directory, 'missing', 'frame.npy')
            with self.assertRaises(CameraError):
                write_image(filename, np.zeros((4, 6), dtype=np.uint8))

    def test_unsupported_suffix(self):
        """
        OpenCV errors are raised as CameraError
        """

        class error(Exception):
            pass

        cv = mock.MagicMock()
        cv.error = error
        cv.imwrite.side_effect = error('could not find a writer for the specified extension')

        with mock.patch.dict('sys.modules', {'cv2': cv}):
            with self.assertRaises(CameraError) as context:
                write_image('frame.xyz', np.zeros((4, 6), dtype=np.uint8))

        self.assertIn('could not find a writer', str(context.exception))

        return

    def test_show_image(self):
        cv = mock.MagicMock()
        frame = np.zeros((4, 6), dtype=np.uint8)
        with mock.patch.dict('sys.modules', {'cv2': cv}):
            show_image(frame, title='camera[22421982]')
        cv.imshow.assert_called_once_with('camera[22421982]', frame)
        cv.waitKey.assert_called_once_with(0)
        cv.destroyAllWindows.assert_called_once_with()

if __name__ == '__main__':
    ut.main()
