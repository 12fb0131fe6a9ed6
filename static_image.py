"""Hand-off point for images that aren't animated GIFs."""

import io
import logging
from abc import ABC, abstractmethod

from PIL import Image, UnidentifiedImageError

from gif_errors import UnsupportedImage

logger = logging.getLogger(__name__)


class StaticImageDecoder(ABC):

    @abstractmethod
    def decode_static(self, source):
        """Decode the rest of source into a pixmap or raise UnsupportedImage."""


class PillowStaticDecoder(StaticImageDecoder):
    """Decodes with Pillow and returns the loaded ``PIL.Image.Image``."""

    def decode_static(self, source):
        data = source.read_all()
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except UnidentifiedImageError as e:
            raise UnsupportedImage(str(e)) from e
        except OSError as e:
            logger.warning('static decode failed: %s', e)
            raise UnsupportedImage(str(e)) from e
        return image


def decode_static(source):
    return PillowStaticDecoder().decode_static(source)
