import numpy as np
import pathlib as pl

from ._spinnaker import CameraError

def to_ndarray(image):
    """
    Copy a converted image into a numpy array

    keywords
    --------
    image : ImagePtr
        an image returned by the image processor

    returns
    -------
    frame : numpy.ndarray
        array with shape (height + y padding, width + x padding) for mono
        images or (height + y padding, width + x padding, channels) for color
        images

    notes
    -----
    The image data contains padding and each row starts "stride" bytes after
    the previous one, so the padding has to be accounted for when the array
    is allocated. The returned array is a copy and stays valid after the
    image is released.
    """

    rows = image.GetHeight() + image.GetYPadding()
    cols = image.GetWidth() + image.GetXPadding()
    stride = image.GetStride()
    channels = max(1, image.GetBitsPerPixel() // 8)

    buffer = np.asarray(image.GetData(), dtype=np.uint8).ravel()
    if buffer.size < rows * stride:
        raise CameraError(f'Image buffer ({buffer.size} bytes) is smaller than {rows} rows of {stride} bytes')
    if cols * channels > stride:
        raise CameraError(f'Image row ({cols * channels} bytes) exceeds the stride ({stride} bytes)')

    frame = buffer[:rows * stride].reshape(rows, stride)[:, :cols * channels]
    if channels > 1:
        frame = frame.reshape(rows, cols, channels)

    return frame.copy()

def write_image(filename, image):
    """
    Save an image to disk

    Numpy files (.npy) are written with numpy, everything else with OpenCV.
    Failures are raised as CameraError.
    """

    filename = pl.Path(filename)

    if filename.suffix == '.npy':
        try:
            np.save(str(filename), image)
        except OSError as error:
            raise CameraError(f'Failed to write image to {filename}: {error}') from None
        return

    import cv2 as cv
    if image.ndim == 3:
        image = cv.cvtColor(image, cv.COLOR_RGB2BGR)
    try:
        written = cv.imwrite(str(filename), image)
    except cv.error as error:
        raise CameraError(f'Failed to write image to {filename}: {error}') from None
    if not written:
        raise CameraError(f'Failed to write image to {filename}')

    return

def show_image(image, title=''):
    """
    Display an image and wait for a key press
    """

    import cv2 as cv
    if image.ndim == 3:
        image = cv.cvtColor(image, cv.COLOR_RGB2BGR)
    try:
        cv.imshow(title, image)
        cv.waitKey(0)
        cv.destroyAllWindows()
    except cv.error as error:
        raise CameraError(f'Failed to display image: {error}') from None

    return
