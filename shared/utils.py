"""Shared utility functions for the field documentation application.

Image helpers used by the upload pipeline. They work purely on bytes so
they can be exercised without a running app or a filesystem.
"""

import io
import logging
import os
from functools import wraps
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMBNAIL_MAX_SIZE = 300
THUMBNAIL_QUALITY = 80


class CorruptedImageError(Exception):
    """Raised when image data is corrupted and cannot be processed."""
    pass


def handle_image_errors(func):
    """Decorator to handle image processing errors consistently.

    Converts every failure raised by the decorated function into
    CorruptedImageError, logging the cause once.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        image_data = kwargs.get('image_data', args[0] if args else None)

        def log_and_raise(msg, exc):
            size = len(image_data) if image_data else 0
            logger.warning(f"{msg} - image data (size: {size} bytes): {exc}")
            raise CorruptedImageError(f"{msg}: {exc}") from exc

        try:
            return func(*args, **kwargs)
        except CorruptedImageError:
            raise
        except UnidentifiedImageError as e:
            log_and_raise("Corrupted or unsupported image format", e)
        except (OSError, ValueError) as e:
            log_and_raise("Error processing image", e)
        except Exception as e:
            logger.error(f"Unexpected error generating thumbnail: {e}", exc_info=True)
            raise CorruptedImageError(f"Unexpected error generating thumbnail: {e}") from e

    return wrapper


def thumbnail_filename(original_filename):
    """Name of the derived preview for a stored original.

    ``1700000000000-site.png`` becomes ``thumb_1700000000000-site.jpg``.
    """
    stem, _ext = os.path.splitext(os.path.basename(original_filename))
    return f"thumb_{stem}.jpg"


@handle_image_errors
def generate_thumbnail(image_data, max_size=THUMBNAIL_MAX_SIZE, quality=THUMBNAIL_QUALITY):
    """Generate a JPEG preview that fits within ``max_size`` x ``max_size``.

    Aspect ratio is preserved and images already inside the box are never
    enlarged. The output is always JPEG, whatever the source format.

    Args:
        image_data (bytes): Raw image data bytes
        max_size (int, optional): Bounding box edge. Defaults to 300
        quality (int, optional): JPEG quality. Defaults to 80

    Returns:
        bytes: Encoded JPEG thumbnail

    Raises:
        CorruptedImageError: When the data cannot be decoded or re-encoded.
    """
    if not image_data:
        raise CorruptedImageError("No image data to generate a thumbnail from")

    with Image.open(io.BytesIO(image_data)) as img:
        img.load()
        # Honour camera orientation before measuring the box
        img = ImageOps.exif_transpose(img)

        # thumbnail() only ever shrinks
        img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)

        if img.mode != 'RGB':
            if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
                rgba = img.convert('RGBA')
                background = Image.new('RGB', rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.split()[-1])
                img = background
            else:
                img = img.convert('RGB')

        thumb_buffer = io.BytesIO()
        img.save(thumb_buffer, format='JPEG', quality=quality)
        return thumb_buffer.getvalue()
