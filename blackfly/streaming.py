import dill
import time
import queue
import logging
import multiprocessing as mp

# relative imports
from ._spinnaker import CameraError
from .processes import MainProcess, ChildProcess

# logging setup
logging.basicConfig(format='%(levelname)s : %(message)s',level=logging.INFO)

def _acquire(child, camera, **kwargs):
    """
    Main aquisition loop
    """

    while child.acquiring.value:

        # software trigger requested by the main process
        if child.fire.is_set():
            child.fire.clear()
            try:
                camera.execute_trigger()
            except CameraError as error:
                logging.log(logging.WARNING, str(error))

        try:
            image = camera.get_image(kwargs['timeout'])
        except CameraError as error:
            logging.log(logging.DEBUG, str(error))
            continue

        # store the image (critical - use lock)
        with child.qlock:

            # remove the previous image
            try:
                child.buffer.get_nowait()
            except queue.Empty:
                pass

            # replace with the current image
            try:
                child.buffer.put_nowait(image)
            except queue.Full:
                pass

    return True, None, None

def _update_property_value(fset, value, main):
    """
    Update the value of an acquisition property without closing and reopening
    the video stream

    Notes
    -----
    This function wraps an acquisition property's setter method (see below)
    """

    # pause acquisition and unlock the camera
    main._stop_acquisition()

    # set the new value and unpause acquisition
    try:
        fset(main, value)
    finally:
        main._start_acquisition()

    return

class StreamingChildProcess(ChildProcess):
    """
    """

    def __init__(self, serial_number=None, device_index=None, settings=None):
        """
        """

        super().__init__(serial_number, device_index, settings)

        # This queue acts as a buffer holding a single image
        self.buffer = mp.Queue(maxsize=1)

        # This lock prevents reading and writing to the buffer at the same time
        self.qlock = mp.Lock()

        # Set by the main process to request a software trigger
        self.fire = mp.Event()

        return

class VideoStream(MainProcess):
    """
    Continuous acquisition in a child process

    The most recent frame is kept in a single slot buffer and returned by
    read. Setting an acquisition property briefly pauses acquisition.
    """

    def __init__(
        self,
        serial_number : str=None,
        device_index  : int=None,
        settings      : dict=None,
        nickname      : str=None,
        ):
        """
        """

        super().__init__(serial_number, device_index, settings, nickname)
        self.open()

        return

    def _start_acquisition(self):
        """
        Send the acquisition loop to the child process
        """

        self._child.acquiring.value = 1
        kwargs = {
            'timeout' : self._settings['timeout']
        }
        item = (dill.dumps(_acquire), kwargs)
        self._child.iq.put(item)
        self._locked = True

        return

    def _stop_acquisition(self, timeout: float=3):
        """
        Exit the acquisition loop and check its result
        """

        self._child.acquiring.value = 0

        # the loop exits after the current image retrieval times out
        wait = timeout + self._settings['timeout'] / 1000
        try:
            result, output, message = self._child.oq.get(timeout=wait)
        except queue.Empty:
            raise CameraError(f'Acquisition loop for {self.nickname} did not exit') from None

        self._locked = False

        if not result:
            raise CameraError(message)

        return

    def open(self):
        """
        """

        # spawn a child process as needed
        if self._child is None:
            self._spawn_child_process(StreamingChildProcess)
        else:
            raise CameraError('Video stream is already opened')

        self._start_acquisition()

        return

    def close(self):
        """
        """

        # return if there is no active child or the stream is already closed
        if self._child is None:
            raise CameraError('Video stream is already closed')

        try:
            self._stop_acquisition()

        # the child is joined even if the acquisition loop failed
        finally:

            # flush the buffer and clean up
            while True:
                try:
                    self._child.buffer.get_nowait()
                except queue.Empty:
                    break
            self._child.buffer.close()
            self._child.buffer.join_thread()

            # join the child process (the camera is released by the child)
            self._locked = False
            self._join_child_process()

        return

    def read(self, timeout: float=1.0):
        """
        Return the most recently buffered image

        Returns
        -------
        result : bool
            False if no image was buffered before the timeout (in seconds)
        image : numpy.ndarray or None
        """

        # return if there is no active child or the stream is closed
        if self._child is None:
            raise CameraError('Video stream is closed')

        # grab the most recently buffered image (critical - use lock)
        deadline = time.time() + timeout
        while True:
            with self._child.qlock:
                try:
                    image = self._child.buffer.get_nowait()
                    return (True, image)
                except queue.Empty:
                    pass
            if time.time() >= deadline:
                return (False, None)
            time.sleep(0.001)

    def trigger_once(self):
        """
        Request a software trigger from the acquisition loop
        """

        if self._child is None:
            raise CameraError('Video stream is closed')

        self._child.fire.set()

        return

    # override all of the acquisition property's setter methods
    @MainProcess.exposure.setter
    def exposure(self, value):
        _update_property_value(MainProcess.exposure.fset, value, self)

    @MainProcess.gain.setter
    def gain(self, value):
        _update_property_value(MainProcess.gain.fset, value, self)

    @MainProcess.framerate.setter
    def framerate(self, value):
        _update_property_value(MainProcess.framerate.fset, value, self)

    @MainProcess.trigger.setter
    def trigger(self, value):
        _update_property_value(MainProcess.trigger.fset, value, self)
