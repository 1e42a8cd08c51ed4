import queue
import numpy as np
import unittest as ut
from unittest import mock

from blackfly import streaming
from blackfly._spinnaker import CameraError
from blackfly.config import load_settings
from blackfly.processes import MainProcess
from blackfly.streaming import VideoStream, _acquire, _update_property_value

from tests.unit.fakes import StubCamera, LoopbackChild

def make_frame(value):
    return np.full((4, 6), value, dtype=np.uint8)

class UnwritableTriggerCamera(StubCamera):

    def execute_trigger(self):
        raise CameraError('TriggerSoftware node is not writable')

class TestAcquisitionLoop(ut.TestCase):
    """
    """

    def test_most_recent_frame_is_kept(self):
        """
        """

        camera = StubCamera(frames=[make_frame(1), make_frame(2), make_frame(3)])
        child = LoopbackChild(camera)
        child.acquiring.value = 1

        result = _acquire(child, camera, timeout=100)

        self.assertEqual(result, (True, None, None))
        self.assertEqual(child.buffer.qsize(), 1)
        self.assertTrue(np.array_equal(child.buffer.get(), make_frame(3)))

        return

    def test_failed_retrieval_is_skipped(self):
        """
        """

        frames = [make_frame(1), CameraError('Image incomplete'), make_frame(2)]
        camera = StubCamera(frames=frames)
        child = LoopbackChild(camera)
        child.acquiring.value = 1

        _acquire(child, camera, timeout=100)

        self.assertTrue(np.array_equal(child.buffer.get(), make_frame(2)))

        return

    def test_software_trigger(self):
        """
        """

        camera = StubCamera(frames=[make_frame(1)])
        child = LoopbackChild(camera)
        child.acquiring.value = 1
        child.fire.set()

        _acquire(child, camera, timeout=100)

        self.assertEqual(camera.triggers, 1)
        self.assertFalse(child.fire.is_set())

        return

    def test_failed_software_trigger(self):
        """
        A failed trigger is logged and the loop keeps running
        """

        camera = UnwritableTriggerCamera(frames=[make_frame(1)])
        child = LoopbackChild(camera)
        child.acquiring.value = 1
        child.fire.set()

        with self.assertLogs(level='WARNING'):
            result = _acquire(child, camera, timeout=100)

        self.assertEqual(result, (True, None, None))
        self.assertTrue(np.array_equal(child.buffer.get(), make_frame(1)))

        return

class TestUpdatePropertyValue(ut.TestCase):

    def test_acquisition_is_paused(self):
        """
        """

        calls = list()

        class Main():
            def _stop_acquisition(self):
                calls.append('stop')
            def _start_acquisition(self):
                calls.append('start')

        def fset(main, value):
            calls.append(('set', value))

        _update_property_value(fset, 10, Main())
        self.assertEqual(calls, ['stop', ('set', 10), 'start'])

        return

    def test_acquisition_resumes_after_failure(self):
        """
        """

        calls = list()

        class Main():
            def _stop_acquisition(self):
                calls.append('stop')
            def _start_acquisition(self):
                calls.append('start')

        def fset(main, value):
            raise CameraError('Failed')

        with self.assertRaises(CameraError):
            _update_property_value(fset, 10, Main())
        self.assertEqual(calls, ['stop', 'start'])

        return

class TestVideoStream(ut.TestCase):
    """
    Drives a video stream whose child process is replaced with a loopback
    """

    def setUp(self):
        self.camera = StubCamera()
        self.stream = VideoStream.__new__(VideoStream)
        MainProcess.__init__(self.stream, settings=load_settings())
        self.stream._child = LoopbackChild(self.camera)
        self.stream._start_acquisition()
        return

    def test_locked_during_acquisition(self):
        self.assertTrue(self.stream.locked)

    def test_read(self):
        """
        """

        self.stream._child.buffer.put(make_frame(7))

        result, image = self.stream.read()
        self.assertTrue(result)
        self.assertTrue(np.array_equal(image, make_frame(7)))

        result, image = self.stream.read(timeout=0.01)
        self.assertFalse(result)
        self.assertIsNone(image)

        return

    def test_read_holds_buffer_lock(self):
        self.stream._child.qlock = mock.MagicMock()
        self.stream._child.buffer.put(make_frame(7))
        result, image = self.stream.read()
        self.assertTrue(result)
        self.stream._child.qlock.__enter__.assert_called_once_with()

    def test_set_property_during_acquisition(self):
        """
        """

        self.stream.exposure = 2000
        self.stream.trigger = 'Software'

        self.assertEqual(self.camera.exposure, 2000)
        self.assertEqual(self.camera.trigger, 'Software')
        self.assertEqual(self.stream.exposure, 2000)
        self.assertTrue(self.stream.locked)

        return

    def test_invalid_property_value(self):
        with self.assertRaises(CameraError):
            self.stream.trigger = 'Bogus'
        self.assertTrue(self.stream.locked)

    def test_trigger_once(self):
        self.stream.trigger_once()
        self.assertTrue(self.stream._child.fire.is_set())

    def test_closed_stream(self):
        self.stream._child = None
        with self.assertRaises(CameraError):
            self.stream.read()
        with self.assertRaises(CameraError):
            self.stream.trigger_once()

class LoopbackStreamingChild(LoopbackChild):
    """
    Stands in for the streaming child process
    """

    def __init__(self, serial_number=None, device_index=None, settings=None):
        super().__init__(UnwritableTriggerCamera(frames=[make_frame(1)]))
        self.oq.put((True, None))

class TestVideoStreamLifecycle(ut.TestCase):
    """
    Opens and closes video streams whose child process is a loopback
    """

    def setUp(self):
        patcher = mock.patch.object(streaming, 'StreamingChildProcess', LoopbackStreamingChild)
        patcher.start()
        self.addCleanup(patcher.stop)
        return

    def test_open_and_close(self):
        """
        """

        stream = VideoStream(settings=load_settings())
        child = stream._child

        self.assertTrue(stream.opened)
        self.assertTrue(stream.locked)
        self.assertEqual(stream.width, 1440)

        result, image = stream.read()
        self.assertTrue(result)
        self.assertTrue(np.array_equal(image, make_frame(1)))

        stream.close()

        self.assertTrue(child.joined)
        self.assertTrue(child.buffer.closed)
        self.assertIsNone(stream._child)
        self.assertFalse(stream.opened)
        self.assertFalse(stream.locked)

        with self.assertRaises(CameraError):
            stream.close()

        return

    def test_open_twice(self):
        stream = VideoStream(settings=load_settings())
        with self.assertRaises(CameraError):
            stream.open()
        stream.close()

    def test_close_after_failed_trigger(self):
        """
        """

        stream = VideoStream(settings=load_settings())
        child = stream._child

        stream.trigger_once()
        with self.assertLogs(level='WARNING'):
            stream.gain = 6

        self.assertEqual(child.camera.gain, 6)
        self.assertFalse(child.fire.is_set())

        stream.close()
        self.assertTrue(child.joined)
        self.assertIsNone(stream._child)

        return

    def test_close_after_failed_acquisition(self):
        """
        The child process is joined even if the acquisition loop failed
        """

        stream = VideoStream(settings=load_settings())
        child = stream._child

        # replace the result of the acquisition loop with a failure
        child.oq.get_nowait()
        child.oq.put((False, None, 'Acquisition failed'))

        with self.assertRaises(CameraError) as context:
            stream.close()

        self.assertEqual(str(context.exception), 'Acquisition failed')
        self.assertTrue(child.joined)
        self.assertIsNone(stream._child)
        self.assertFalse(stream.locked)

        with self.assertRaises(CameraError) as context:
            stream.close()
        self.assertIn('already closed', str(context.exception))

        return

if __name__ == '__main__':
    ut.main()
