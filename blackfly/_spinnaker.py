import logging
from . import constants as c

# logging setup
logging.basicConfig(format='%(levelname)s : %(message)s',level=logging.INFO)

# try to import the PySpin package
try:
    import PySpin
except ModuleNotFoundError:
    PySpin = None
    logging.error('PySpin import failed.')

class CameraError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)

def _require_pyspin():
    if PySpin is None:
        raise CameraError('PySpin is not installed')

class NodeMap():
    """
    Reads and writes camera properties by name through a GenICam node map

    notes
    -----
    Each accessor casts the node to the pointer type matching its interface
    (float, integer, enumeration, etc.) and checks its access mode before it
    is used. Any failure is raised as a CameraError which names the node.
    """

    def __init__(self, nodemap):
        """
        keywords
        --------
        nodemap : INodeMap
            the node map returned by CameraPtr.GetNodeMap or GetTLDeviceNodeMap
        """

        _require_pyspin()

        self._nodemap = nodemap

        return

    def _node(self, name, cast, writable=False):
        """
        retrieve a node and make sure it can be read (or written)
        """

        node = cast(self._nodemap.GetNode(name))

        if not PySpin.IsAvailable(node):
            raise CameraError(f'{name} node is not available')

        if writable:
            if not PySpin.IsWritable(node):
                raise CameraError(f'{name} node is not writable')
        elif not PySpin.IsReadable(node):
            raise CameraError(f'{name} node is not readable')

        return node

    # float nodes
    def get_float(self, name: str) -> float:
        node = self._node(name, PySpin.CFloatPtr)
        try:
            return node.GetValue()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to query {name}: {error}') from None

    def get_float_range(self, name: str) -> tuple:
        node = self._node(name, PySpin.CFloatPtr)
        try:
            return node.GetMin(), node.GetMax()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to query the range of {name}: {error}') from None

    def set_float(self, name: str, value: float) -> None:
        node = self._node(name, PySpin.CFloatPtr, writable=True)
        try:
            node.SetValue(float(value))
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to set {name} to {value}: {error}') from None

    # integer nodes
    def get_int(self, name: str) -> int:
        node = self._node(name, PySpin.CIntegerPtr)
        try:
            return node.GetValue()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to query {name}: {error}') from None

    # string nodes
    def get_string(self, name: str) -> str:
        node = self._node(name, PySpin.CStringPtr)
        try:
            return node.GetValue()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to query {name}: {error}') from None

    # boolean nodes
    def get_bool(self, name: str) -> bool:
        node = self._node(name, PySpin.CBooleanPtr)
        try:
            return node.GetValue()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to query {name}: {error}') from None

    def set_bool(self, name: str, value: bool) -> None:
        node = self._node(name, PySpin.CBooleanPtr, writable=True)
        try:
            node.SetValue(bool(value))
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to set {name} to {value}: {error}') from None

    # enumeration nodes
    def get_enum(self, name: str) -> str:
        """
        Return the symbolic name of the current entry
        """

        node = self._node(name, PySpin.CEnumerationPtr)
        try:
            return node.GetCurrentEntry().GetSymbolic()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to query {name}: {error}') from None

    def set_enum(self, name: str, entry: str) -> None:
        """
        Select an enumeration entry by its symbolic name
        """

        node = self._node(name, PySpin.CEnumerationPtr, writable=True)
        item = node.GetEntryByName(entry)
        if not PySpin.IsAvailable(item) or not PySpin.IsReadable(item):
            raise CameraError(f'{entry} is not a valid entry for {name}')
        try:
            node.SetIntValue(item.GetValue())
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to set {name} to {entry}: {error}') from None

    # command nodes
    def execute(self, name: str) -> None:
        node = self._node(name, PySpin.CCommandPtr, writable=True)
        try:
            node.Execute()
        except PySpin.SpinnakerException as error:
            raise CameraError(f'Failed to execute {name}: {error}') from None

def open_system():
    """
    Return the system instance and the list of detected cameras
    """

    _require_pyspin()

    system = PySpin.System.GetInstance()
    cameras = system.GetCameras()

    return system, cameras

def release_system(system, cameras, pointer=None):
    """
    Remove references to PySpin objects

    notes
    -----
    The camera pointer must be de-initialized and dropped before the camera
    list is cleared and the system instance is released.
    """

    if pointer is not None:
        if pointer.IsStreaming():
            pointer.EndAcquisition()
        if pointer.IsInitialized():
            pointer.DeInit()
        del pointer

    cameras.Clear()
    del cameras
    system.ReleaseInstance()
    del system

    return

def camera_count():
    """
    Return the number of available cameras
    """

    system, cameras = open_system()
    ncameras = cameras.GetSize()
    release_system(system, cameras)

    return ncameras

def list_serial_numbers():
    """
    Return the serial number of each available camera
    """

    system, cameras = open_system()
    serial_numbers = list()
    try:
        for index in range(cameras.GetSize()):
            pointer = cameras.GetByIndex(index)
            nodemap = NodeMap(pointer.GetTLDeviceNodeMap())
            serial_numbers.append(nodemap.get_string(c.NODE_SERIAL_NUMBER))
            del pointer
    finally:
        release_system(system, cameras)

    return serial_numbers
