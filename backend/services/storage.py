"""Local filesystem storage for uploaded assets.

Layout under the upload root::

    <root>/<user_id>/<project_id>/<filename>

The resolver only produces directories; callers choose filenames.
"""

import logging
import os
from pathlib import Path


logger = logging.getLogger(__name__)


class StoragePathResolver:
    """Maps (user, project) to a directory below a fixed upload root."""

    def __init__(self, upload_root):
        self.upload_root = Path(upload_root).resolve()

    def _segment(self, value, label):
        segment = str(value)
        # Identifiers become path components, so they must be a single plain name
        if not segment or segment in ('.', '..') or os.sep in segment or (os.altsep and os.altsep in segment):
            raise ValueError(f"Invalid {label} for storage path: {segment!r}")
        return segment

    def resolve(self, user_id, project_id):
        """Return the project directory, creating it if absent.

        Safe to call concurrently: an existing directory is not an error.
        """
        directory = self.upload_root / self._segment(user_id, 'user id') / self._segment(project_id, 'project id')
        directory.mkdir(parents=True, exist_ok=True)
        return str(directory)

    def path_for(self, user_id, project_id, filename):
        """Absolute path for ``filename`` inside the project directory."""
        return os.path.join(self.resolve(user_id, project_id), self._segment(filename, 'filename'))

    def flat_directory(self, name):
        """A directory directly under the root, for storage without owner nesting."""
        directory = self.upload_root / self._segment(name, 'directory')
        directory.mkdir(parents=True, exist_ok=True)
        return str(directory)

    def contains(self, path):
        """True when ``path`` lies inside the upload root."""
        try:
            Path(path).resolve().relative_to(self.upload_root)
        except ValueError:
            return False
        return True


class FileStorage:
    """Byte-level file operations used by the upload pipeline.

    ``save`` failures propagate to the caller. ``delete`` never raises.
    """

    def save(self, path, data):
        """Write ``data`` to ``path``, replacing any existing file."""
        with open(path, 'wb') as f:
            f.write(data)
        logger.debug(f"Saved {len(data)} bytes to {path}")
        return path

    def delete(self, path):
        """Best-effort delete.

        A missing file is fine. Any other OS error is logged and swallowed.

        Returns:
            bool: True if a file was removed
        """
        if not path:
            return False
        try:
            os.remove(path)
            logger.debug(f"Deleted file {path}")
            return True
        except FileNotFoundError:
            logger.debug(f"File already absent, nothing to delete: {path}")
            return False
        except OSError as e:
            logger.warning(f"Failed to delete file {path}: {e}")
            return False

    def exists(self, path):
        return bool(path) and os.path.isfile(path)

    def open_for_read(self, path):
        """Open a binary read handle; the caller owns closing it."""
        return open(path, 'rb')
