import logging

# relative imports
from . import _spinnaker
from . import constants as c
from ._spinnaker import CameraError, NodeMap, open_system, release_system
from .config import load_settings
from .imaging import to_ndarray

# logging setup
logging.basicConfig(format='%(levelname)s : %(message)s',level=logging.INFO)

def clamp(value, minimum, maximum):
    """
    Limit a value to the range [minimum, maximum]
    """

    if value < minimum:
        value = minimum
    if value > maximum:
        value = maximum

    return value

class Blackfly():
    """
    A single Blackfly camera running in continuous acquisition

    keywords
    --------
    serial_number : str
        the camera's serial number
    device_index : int
        the camera's index in the list of detected cameras
    settings : dict
        acquisition settings (see config.load_settings)

    notes
    -----
    If neither the serial number nor the device index is specified, the serial
    number from the settings is used. The camera is opened on construction:
    auto exposure and auto gain are switched off, gamma correction is reset,
    the default trigger mode is applied and acquisition is started.
    """

    def __init__(self, serial_number=None, device_index=None, settings=None):
        """
        """

        if settings is None:
            settings = load_settings()
        self._settings = settings

        # Identify the getby method
        if serial_number is not None and device_index is not None:
            raise CameraError(f'Invalid kwargs combo: serial number={serial_number}, device index={device_index}')

        elif device_index is not None:
            self._getby = c.GETBY_DEVICE_INDEX
            self._device = int(device_index)

        else:
            if serial_number is None:
                serial_number = settings['serial_number']
            if serial_number is None:
                raise CameraError('No identifier provided to constructor')
            self._getby = c.GETBY_SERIAL_NUMBER
            self._device = str(serial_number)

        # PySpin objects (determined when the camera is opened)
        self._system    = None
        self._cameras   = None
        self._pointer   = None
        self._nodemap   = None
        self._processor = None
        self._format    = None

        # parameters (determined when the camera is opened)
        self._width   = None
        self._height  = None
        self._trigger = None

        self._nickname = f'camera[{self._device}]'

        self.open()

        return

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def open(self):
        """
        Find and initialize the camera, configure it and start acquisition
        """

        if self.opened:
            logging.log(logging.INFO, f'{self.nickname} is already open')
            return

        PySpin = _spinnaker.PySpin

        system, cameras = open_system()
        pointer = None

        try:

            if cameras.GetSize() == 0:
                raise CameraError('No supported cameras were detected.')

            if self._getby == c.GETBY_SERIAL_NUMBER:
                pointer = cameras.GetBySerial(self._device)
            else:
                pointer = cameras.GetByIndex(self._device)
            cameras.Clear()

            if not pointer.IsValid():
                pointer = None
                raise CameraError(f'Failed to locate {self.nickname}')

            pointer.Init()

        except PySpin.SpinnakerException as error:
            release_system(system, cameras, pointer)
            raise CameraError(f'Failed to initialize {self.nickname}: {error}') from None

        except CameraError:
            release_system(system, cameras, pointer)
            raise

        self._system  = system
        self._cameras = cameras
        self._pointer = pointer
        self._nodemap = NodeMap(pointer.GetNodeMap())

        try:
            self._configure()
        except CameraError:
            try:
                self.close()
            except CameraError as error:
                logging.log(logging.ERROR, str(error))
            raise

        logging.log(logging.INFO, f'{self.nickname} initialized')

        return

    def _configure(self):
        """
        Apply the initial node values and start acquisition
        """

        PySpin = _spinnaker.PySpin

        # turn off auto exposure and auto gain
        self._nodemap.set_enum(c.NODE_EXPOSURE_AUTO, 'Off')
        self._nodemap.set_enum(c.NODE_GAIN_AUTO, 'Off')

        self.gamma = self._settings['gamma']

        self._width  = self._nodemap.get_int(c.NODE_WIDTH)
        self._height = self._nodemap.get_int(c.NODE_HEIGHT)

        self._nodemap.set_enum(c.NODE_ACQUISITION, 'Continuous')

        # image conversion
        algorithm = self._settings['color_processing']
        try:
            self._format = getattr(PySpin, f'PixelFormat_{self._settings["pixel_format"]}')
            self._processor = PySpin.ImageProcessor()
            self._processor.SetColorProcessing(getattr(PySpin, f'SPINNAKER_COLOR_PROCESSING_ALGORITHM_{algorithm}'))
        except AttributeError:
            raise CameraError(f'Unsupported image conversion: {self._settings["pixel_format"]}, {algorithm}') from None

        self.setup_trigger(self._settings['trigger'])

        try:
            self._pointer.BeginAcquisition()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to begin acquisition for {self.nickname}: {error}') from None

        return

    def close(self):
        """
        Stop acquisition, de-initialize the camera and release the system
        """

        if self._pointer is None:
            return

        PySpin = _spinnaker.PySpin

        message = None
        try:
            if self._pointer.IsStreaming():
                self._pointer.EndAcquisition()
            if self._pointer.IsInitialized():
                self._pointer.DeInit()
        except PySpin.SpinnakerException as error:
            message = f'Failed to de-initialize {self.nickname}: {error}'

        # the camera must be dereferenced before the system is released
        self._pointer   = None
        self._nodemap   = None
        self._processor = None
        release_system(self._system, self._cameras)
        self._system  = None
        self._cameras = None

        if message is not None:
            raise CameraError(message)

        logging.log(logging.INFO, f'{self.nickname} released')

        return

    def _check(self):
        if not self.opened:
            raise CameraError(f'{self.nickname} is not open')

    def _set_clamped(self, node, value, label, unit):
        """
        Clamp a value to the range reported by a float node and write it
        """

        self._check()

        minimum, maximum = self._nodemap.get_float_range(node)
        target = clamp(value, minimum, maximum)
        if target != value:
            logging.log(logging.WARNING, f'Target {label} ({value} {unit}) falls outside the range of possible values: {minimum:.1f}, {maximum:.1f} {unit}')

        self._nodemap.set_float(node, target)
        logging.log(logging.DEBUG, f'{label} set to {target} {unit}')

        return target

    # exposure
    @property
    def exposure(self):
        """
        Camera exposure time in micro seconds
        """

        self._check()
        return self._nodemap.get_float(c.NODE_EXPOSURE_TIME)

    @exposure.setter
    def exposure(self, value):
        self._set_clamped(c.NODE_EXPOSURE_TIME, value, 'exposure', 'us')

    # gain
    @property
    def gain(self):
        """
        Camera gain in dB
        """

        self._check()
        return self._nodemap.get_float(c.NODE_GAIN)

    @gain.setter
    def gain(self, value):
        self._set_clamped(c.NODE_GAIN, value, 'gain', 'dB')

    # framerate
    @property
    def framerate(self):
        """
        Camera framerate in frames per second
        """

        self._check()
        return self._nodemap.get_float(c.NODE_FRAMERATE)

    @framerate.setter
    def framerate(self, value):
        self._check()
        self._nodemap.set_bool(c.NODE_FRAMERATE_ON, True)
        self._set_clamped(c.NODE_FRAMERATE, value, 'framerate', 'fps')

    # gamma
    @property
    def gamma(self):
        self._check()
        return self._nodemap.get_float(c.NODE_GAMMA)

    @gamma.setter
    def gamma(self, value):
        self._set_clamped(c.NODE_GAMMA, value, 'gamma', '')

    # trigger mode
    @property
    def trigger(self):
        """
        Trigger mode: None, Software or Hardware
        """

        return self._trigger

    @trigger.setter
    def trigger(self, value):
        self.setup_trigger(value)

    def setup_trigger(self, mode):
        """
        Select one of the trigger configurations

        keywords
        --------
        mode : str
            "None" for free-running acquisition, "Software" for frames
            triggered by execute_trigger or "Hardware" for frames triggered
            by the hardware trigger line
        """

        self._check()

        if mode not in c.TRIGGER_PERMITTED_VALUES:
            raise CameraError(f'{mode} is not a valid trigger mode')

        PySpin = _spinnaker.PySpin

        # the trigger source can only be changed while the camera is idle
        streaming = self.streaming
        try:
            if streaming:
                self._pointer.EndAcquisition()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to pause acquisition for {self.nickname}: {error}') from None

        self._nodemap.set_enum(c.NODE_TRIGGER_MODE, 'Off')

        if mode == c.TRIGGER_SOFTWARE:
            self._nodemap.set_enum(c.NODE_TRIGGER_SELECT, 'FrameStart')
            self._nodemap.set_enum(c.NODE_TRIGGER_SOURCE, 'Software')
            self._nodemap.set_enum(c.NODE_TRIGGER_MODE, 'On')

        elif mode == c.TRIGGER_HARDWARE:
            self._nodemap.set_enum(c.NODE_TRIGGER_SELECT, 'FrameStart')
            self._nodemap.set_enum(c.NODE_TRIGGER_SOURCE, self._settings['hardware_line'])
            self._nodemap.set_enum(c.NODE_TRIGGER_MODE, 'On')

        try:
            if streaming:
                self._pointer.BeginAcquisition()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to resume acquisition for {self.nickname}: {error}') from None

        self._trigger = mode
        logging.log(logging.INFO, f'{self.nickname} trigger mode set to {mode}')

        return

    def execute_trigger(self):
        """
        Execute a software trigger
        """

        self._check()

        if self._trigger != c.TRIGGER_SOFTWARE:
            logging.log(logging.WARNING, f'{self.nickname} is not configured for software triggering')

        self._nodemap.execute(c.NODE_TRIGGER_EXECUTE)

        return

    def get_image(self, timeout=None):
        """
        Return the next image as a numpy array

        If not triggering, this is the most recent image. If triggering, it
        is the next image in the sequence.

        keywords
        --------
        timeout : int
            time to wait for an image (in ms)
        """

        self._check()

        if timeout is None:
            timeout = self._settings['timeout']

        PySpin = _spinnaker.PySpin

        try:
            raw = self._pointer.GetNextImage(int(timeout))
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to retrieve an image from {self.nickname}: {error}') from None

        # the raw image must be released whether or not the conversion succeeds
        try:
            if raw.IsIncomplete():
                raise CameraError(f'Image incomplete with image status {raw.GetImageStatus()}')
            image = self._processor.Convert(raw, self._format)
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to convert the image from {self.nickname}: {error}') from None
        finally:
            raw.Release()

        return to_ndarray(image)

    # width (read-only)
    @property
    def width(self):
        return self._width

    # height (read-only)
    @property
    def height(self):
        return self._height

    @property
    def device(self):
        return self._device

    @property
    def getby(self):
        return self._getby

    @property
    def serial_number(self):
        """
        Serial number reported by the device (works for index-selected cameras)
        """

        if not self.opened:
            raise CameraError(f'{self.nickname} is not open')

        return NodeMap(self._pointer.GetTLDeviceNodeMap()).get_string(c.NODE_SERIAL_NUMBER)

    @property
    def nickname(self):
        return self._nickname

    @nickname.setter
    def nickname(self, value):
        self._nickname = str(value)

    @property
    def settings(self):
        return self._settings

    @property
    def opened(self):
        return self._pointer is not None

    @property
    def streaming(self):
        return self.opened and self._pointer.IsStreaming()
