import dill
import queue
import logging
import multiprocessing as mp

# relative imports
from ._spinnaker import CameraError
from .camera import Blackfly
from .config import load_settings

# logging setup
logging.basicConfig(format='%(levelname)s : %(message)s',level=logging.INFO)

def queued(f):
    """
    This decorator sends functions through the input queue and retrieves the
    result of the function call from the output queue
    """

    def wrapped(main, **kwargs):
        """
        Keywords
        --------
        main : MainProcess
            An instance of the MainProcess class
        """

        item = (dill.dumps(f), kwargs)
        main._child.iq.put(item)
        result, output, message = main._child.oq.get()
        if result is False:
            raise CameraError(message)
        else:
            return result, output, message

    return wrapped

def _dispatch(child, camera, item):
    """
    Call a function received through the input queue

    Returns the (result, output, message) triple produced by the function. A
    CameraError raised by the function is returned as a failed result.
    """

    dilled, kwargs = item
    f = dill.loads(dilled)

    try:
        return f(child=child, camera=camera, **kwargs)
    except CameraError as error:
        return False, None, str(error)

class ChildProcess(mp.Process):
    """
    Owns the camera and calls the functions sent by the main process
    """

    def __init__(self, serial_number=None, device_index=None, settings=None):
        """
        """

        super().__init__()

        self.serial_number = serial_number
        self.device_index  = device_index
        self.settings      = settings

        # IO queues
        self.iq = mp.Queue()
        self.oq = mp.Queue()

        # Shared memory flags
        self.started   = mp.Value('i', 0)
        self.acquiring = mp.Value('i', 0)

        return

    def start(self) -> None:
        """
        Override the start method
        """

        self.started.value = 1

        super().start()

        return

    def join(self, timeout: float=5.0) -> None:
        """
        Override the join method
        """

        self.started.value = 0

        # flush the IO queues
        for q in [self.iq, self.oq]:
            while True:
                try:
                    q.get_nowait()
                except queue.Empty:
                    break

        super().join(timeout)

        for q in [self.iq, self.oq]:
            q.close()
            q.join_thread()

        return

    def run(self) -> None:
        """
        """

        try:
            camera = Blackfly(self.serial_number, self.device_index, self.settings)

        except CameraError as error:

            # reset the started flag
            self.started.value = 0

            # emit the result
            self.oq.put((False, str(error)))

            return

        # emit the result
        self.oq.put((True, None))

        # main loop
        try:
            while self.started.value:

                try:
                    item = self.iq.get(timeout=0.1)
                except queue.Empty:
                    continue

                # call the function and output the result
                self.oq.put(_dispatch(self, camera, item))

        # cleanup
        finally:
            camera.close()

        return

class MainProcess():
    """
    Controls a camera which lives in a child process

    notes
    -----
    While the acquisition lock is engaged the child process is busy and the
    property getters return the values recorded when the property was last
    set.
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

        if serial_number is not None and device_index is not None:
            raise CameraError(f'Invalid kwargs combo: serial number={serial_number}, device index={device_index}')

        if settings is None:
            settings = load_settings()

        self._serial_number = serial_number
        self._device_index  = device_index
        self._settings      = settings

        # parameters (determined during initialization)
        self._exposure  = None
        self._gain      = None
        self._framerate = None
        self._trigger   = None
        self._width     = None
        self._height    = None

        # acquisition lock state
        self._locked = False

        # child process
        self._child = None

        #
        if nickname is None:
            self._nickname = f'camera[{self.device}]'
        else:
            self._nickname = nickname

        return

    def _spawn_child_process(self, cls=ChildProcess) -> None:
        """
        Create an instance of the child process and open the camera

        keywords
        --------
        cls : ChildProcess
            a child process class or subclass
        """

        # kill the child process if it already exists
        if self._child is not None:
            self._join_child_process()

        # create and start the child process
        self._child = cls(self._serial_number, self._device_index, self._settings)
        self._child.start()
        result, message = self._child.oq.get()
        if not result:
            self._child.join()
            self._child = None
            raise CameraError(f'Failed to spawn child process: {message}')

        @queued
        def f(child, camera, **kwargs):
            output = {
                'exposure'  : camera.exposure,
                'gain'      : camera.gain,
                'framerate' : camera.framerate,
                'trigger'   : camera.trigger,
                'width'     : camera.width,
                'height'    : camera.height,
            }
            return True, output, None

        result, output, message = f(main=self)

        self._exposure  = output['exposure']
        self._gain      = output['gain']
        self._framerate = output['framerate']
        self._trigger   = output['trigger']
        self._width     = output['width']
        self._height    = output['height']

        logging.log(logging.INFO, f'{self.nickname} opened in child process')

        return

    def _join_child_process(self, timeout: float=3) -> None:
        """
        """

        if self._child is None:
            raise CameraError('No active child process')

        self._child.join(timeout=timeout)
        alive = self._child.is_alive()
        if alive:
            self._child.terminate()
        self._child = None

        if alive:
            raise CameraError('Child process is dead-locked')

        return

    # exposure
    @property
    def exposure(self):
        """
        Camera exposure time in micro seconds
        """

        if self.locked:
            return self._exposure

        @queued
        def f(child, camera, **kwargs):
            return True, camera.exposure, None

        result, output, message = f(main=self)

        return output

    @exposure.setter
    def exposure(self, value):

        if self.locked:
            raise CameraError(f'Camera is locked during acquisition')

        @queued
        def f(child, camera, **kwargs):
            camera.exposure = kwargs['value']
            return True, camera.exposure, None

        result, output, message = f(main=self, value=value)
        self._exposure = output

        return

    # gain
    @property
    def gain(self):
        """
        Camera gain in dB
        """

        if self.locked:
            return self._gain

        @queued
        def f(child, camera, **kwargs):
            return True, camera.gain, None

        result, output, message = f(main=self)

        return output

    @gain.setter
    def gain(self, value):

        if self.locked:
            raise CameraError(f'Camera is locked during acquisition')

        @queued
        def f(child, camera, **kwargs):
            camera.gain = kwargs['value']
            return True, camera.gain, None

        result, output, message = f(main=self, value=value)
        self._gain = output

        return

    # framerate
    @property
    def framerate(self):
        """
        Camera framerate in frames per second
        """

        if self.locked:
            return self._framerate

        @queued
        def f(child, camera, **kwargs):
            return True, camera.framerate, None

        result, output, message = f(main=self)

        return output

    @framerate.setter
    def framerate(self, value):

        if self.locked:
            raise CameraError(f'Camera is locked during acquisition')

        @queued
        def f(child, camera, **kwargs):
            camera.framerate = kwargs['value']
            return True, camera.framerate, None

        result, output, message = f(main=self, value=value)
        self._framerate = output

        return

    # trigger mode
    @property
    def trigger(self):
        """
        Trigger mode: None, Software or Hardware
        """

        if self.locked:
            return self._trigger

        @queued
        def f(child, camera, **kwargs):
            return True, camera.trigger, None

        result, output, message = f(main=self)

        return output

    @trigger.setter
    def trigger(self, value):

        if self.locked:
            raise CameraError(f'Camera is locked during acquisition')

        @queued
        def f(child, camera, **kwargs):
            camera.setup_trigger(kwargs['value'])
            return True, camera.trigger, None

        result, output, message = f(main=self, value=value)
        self._trigger = output

        return

    def execute_trigger(self):
        """
        Execute a software trigger
        """

        if self.locked:
            raise CameraError(f'Camera is locked during acquisition')

        @queued
        def f(child, camera, **kwargs):
            camera.execute_trigger()
            return True, None, None

        f(main=self)

        return

    # width (read-only)
    @property
    def width(self):
        return self._width

    # height (read-only)
    @property
    def height(self):
        return self._height

    # acquisition lock state
    @property
    def locked(self):
        return self._locked

    # serial number or device index
    @property
    def device(self):
        if self._device_index is not None:
            return self._device_index
        if self._serial_number is not None:
            return self._serial_number
        return self._settings['serial_number']

    # camera nickname
    @property
    def nickname(self):
        return self._nickname

    @nickname.setter
    def nickname(self, value):
        self._nickname = str(value)

    @property
    def opened(self):
        """
        Returns the state of the child process (active or inactive)
        """

        if self._child is not None and self._child.started.value:
            return True
        else:
            return False
