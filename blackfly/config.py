import yaml
import pathlib as pl

from . import constants as c
from ._spinnaker import CameraError

# default settings file shipped with the package
SETTINGS_FILEPATH = pl.Path(__file__).parent.joinpath('settings.yaml')

def _read(filepath):
    with open(filepath, 'r') as stream:
        data = yaml.load(stream, Loader=yaml.FullLoader)
    if data is None:
        return dict()
    if not isinstance(data, dict):
        raise CameraError(f'Invalid settings file: {filepath}')
    return data

def load_settings(filepath=None):
    """
    Load the acquisition settings

    keywords
    --------
    filepath : str or Path
        a YAML file whose "camera" section overrides the default settings

    returns
    -------
    settings : dict
        the merged settings
    """

    settings = dict(_read(SETTINGS_FILEPATH)['camera'])

    if filepath is not None:
        overrides = _read(filepath).get('camera') or dict()
        for key, value in overrides.items():
            if key not in settings:
                raise CameraError(f'Unrecognized setting: {key}')
            settings[key] = value

    # serial numbers are strings even when the YAML parser reads an integer
    if settings['serial_number'] is not None:
        settings['serial_number'] = str(settings['serial_number'])

    if settings['pixel_format'] not in c.PIXEL_FORMAT_PERMITTED_VALUES:
        raise CameraError(f'{settings["pixel_format"]} is not a supported pixel format')

    # YAML reads an unquoted None as a string but null as None
    if settings['trigger'] is None:
        settings['trigger'] = c.TRIGGER_NONE
    if settings['trigger'] not in c.TRIGGER_PERMITTED_VALUES:
        raise CameraError(f'{settings["trigger"]} is not a valid trigger mode')

    settings['timeout'] = int(settings['timeout'])
    settings['gamma'] = float(settings['gamma'])

    return settings
