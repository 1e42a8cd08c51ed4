import argparse
import logging

# relative imports
from . import constants as c
from ._spinnaker import CameraError, list_serial_numbers
from .camera import Blackfly
from .config import load_settings
from .imaging import write_image, show_image

def build_parser():
    parser = argparse.ArgumentParser(prog='blackfly', description='grab and display a single image from a Blackfly camera')
    device = parser.add_mutually_exclusive_group()
    device.add_argument('--serial-number', help='serial number of the camera', default=None)
    device.add_argument('--device-index', help='index of the camera in the list of detected cameras', type=int, default=None)
    parser.add_argument('--settings', help='YAML file which overrides the default settings', default=None)
    parser.add_argument('--exposure', help='exposure time (us)', type=float, default=None)
    parser.add_argument('--gain', help='gain (dB)', type=float, default=None)
    parser.add_argument('--framerate', help='framerate (fps)', type=float, default=None)
    parser.add_argument('--trigger', help='trigger mode', choices=c.TRIGGER_PERMITTED_VALUES, default=None)
    parser.add_argument('--timeout', help='image retrieval timeout (ms)', type=int, default=None)
    parser.add_argument('--output', help='write the image to this file instead of displaying it', default=None)
    parser.add_argument('--list', help='list the serial numbers of the detected cameras', action='store_true', default=False)
    parser.add_argument('--verbose', help='log debugging messages', action='store_true', default=False)
    return parser

def main(argv=None):
    """
    Open the camera, grab one image and display (or save) it
    """

    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:

        if args.list:
            for serial_number in list_serial_numbers():
                print(serial_number)
            return 0

        settings = load_settings(args.settings)
        if args.trigger is not None:
            settings['trigger'] = args.trigger

        with Blackfly(args.serial_number, args.device_index, settings) as camera:

            if args.exposure is not None:
                camera.exposure = args.exposure
            if args.gain is not None:
                camera.gain = args.gain
            if args.framerate is not None:
                camera.framerate = args.framerate

            logging.log(logging.INFO, f'exposure  : {camera.exposure:.1f} us')
            logging.log(logging.INFO, f'gain      : {camera.gain:.1f} dB')
            logging.log(logging.INFO, f'framerate : {camera.framerate:.1f} fps')

            if camera.trigger == c.TRIGGER_SOFTWARE:
                camera.execute_trigger()

            image = camera.get_image(args.timeout)

        if args.output is not None:
            write_image(args.output, image)
            logging.log(logging.INFO, f'image saved to {args.output}')
        else:
            show_image(image, title=camera.nickname)

    except CameraError as error:
        logging.log(logging.ERROR, str(error))
        return 1

    return 0
