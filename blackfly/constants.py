# coded values

# device selection
GETBY_SERIAL_NUMBER = 1
GETBY_DEVICE_INDEX  = 2

# image conversion
PIXEL_FORMAT_PERMITTED_VALUES = ['Mono8', 'RGB8']

# trigger modes
TRIGGER_NONE     = 'None'
TRIGGER_SOFTWARE = 'Software'
TRIGGER_HARDWARE = 'Hardware'
TRIGGER_PERMITTED_VALUES = [TRIGGER_NONE, TRIGGER_SOFTWARE, TRIGGER_HARDWARE]

# node names
NODE_EXPOSURE_AUTO   = 'ExposureAuto'
NODE_EXPOSURE_TIME   = 'ExposureTime'
NODE_GAIN_AUTO       = 'GainAuto'
NODE_GAIN            = 'Gain'
NODE_GAMMA           = 'Gamma'
NODE_WIDTH           = 'Width'
NODE_HEIGHT          = 'Height'
NODE_ACQUISITION     = 'AcquisitionMode'
NODE_FRAMERATE       = 'AcquisitionFrameRate'
NODE_FRAMERATE_ON    = 'AcquisitionFrameRateEnable'
NODE_TRIGGER_MODE    = 'TriggerMode'
NODE_TRIGGER_SELECT  = 'TriggerSelector'
NODE_TRIGGER_SOURCE  = 'TriggerSource'
NODE_TRIGGER_EXECUTE = 'TriggerSoftware'
NODE_SERIAL_NUMBER   = 'DeviceSerialNumber'
