"""Thumbnail derivation for uploaded photos."""

import logging
from shared.utils import generate_thumbnail, thumbnail_filename, THUMBNAIL_MAX_SIZE, THUMBNAIL_QUALITY


logger = logging.getLogger(__name__)


class ThumbnailDeriver:
    """Produces a bounded JPEG preview next to the stored original."""

    def __init__(self, resolver, file_storage, max_size=THUMBNAIL_MAX_SIZE, quality=THUMBNAIL_QUALITY):
        self.resolver = resolver
        self.file_storage = file_storage
        self.max_size = max_size
        self.quality = quality

    def derive(self, image_data, user_id, project_id, original_filename):
        """Generate and persist a thumbnail for ``original_filename``.

        Returns:
            str: Absolute path of the written thumbnail

        Raises:
            CorruptedImageError: If the image cannot be decoded
            OSError: If the thumbnail cannot be written
        """
        thumb_bytes = generate_thumbnail(image_data, max_size=self.max_size, quality=self.quality)
        path = self.resolver.path_for(user_id, project_id, thumbnail_filename(original_filename))
        self.file_storage.save(path, thumb_bytes)
        logger.debug(f"Thumbnail written for {original_filename}: {path} ({len(thumb_bytes)} bytes)")
        return path
