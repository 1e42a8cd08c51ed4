from ._spinnaker import CameraError, NodeMap, camera_count, list_serial_numbers
from .camera import Blackfly
from .config import load_settings
from .streaming import VideoStream
