"""Ownership-checked retrieval and deletion of media assets."""

import logging
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from shared.models import Media, Project
from shared.validation import Validator
from ..errors import NotFoundError, InternalError


logger = logging.getLogger(__name__)


class MediaService:
    """Read and delete media through the Media -> Project -> User chain.

    A record whose chain does not end at the caller is reported exactly like
    a record that does not exist.
    """

    def __init__(self, session, file_storage, resolver):
        self.session = session
        self.file_storage = file_storage
        self.resolver = resolver

    def _owned_query(self, user_id):
        return (
            self.session.query(Media)
            .join(Project, Media.project_id == Project.id)
            .filter(Project.user_id == user_id, Media.user_id == user_id)
        )

    def list_media(self, user_id, project_id=None, file_type=None):
        query = self._owned_query(user_id)
        if project_id is not None:
            query = query.filter(Media.project_id == project_id)
        if file_type is not None:
            query = query.filter(Media.file_type == file_type)
        return query.order_by(Media.uploaded_at.desc()).all()

    def get_owned(self, user_id, media_id):
        if not Validator.is_uuid(media_id):
            raise NotFoundError('Media not found')
        media = self._owned_query(user_id).filter(Media.id == media_id).first()
        if media is None:
            raise NotFoundError('Media not found')
        return media

    def _servable(self, path):
        """A stored file that exists and lies inside the upload root."""
        if not self.file_storage.exists(path):
            return False
        if not self.resolver.contains(path):
            logger.warning(f"Refusing to serve file outside the upload root: {path}")
            return False
        return True

    def original_path(self, media):
        """Path of the stored original; NotFoundError if it is gone."""
        if not self._servable(media.file_path):
            logger.warning(f"Original file missing for media {media.id}: {media.file_path}")
            raise NotFoundError('File not found')
        return media.file_path

    def preview_path(self, media):
        """Thumbnail path, falling back to the original when there is none.

        Returns:
            tuple: (path, is_thumbnail)
        """
        if media.thumbnail_path and self._servable(media.thumbnail_path):
            return media.thumbnail_path, True
        if self._servable(media.file_path):
            return media.file_path, False
        logger.warning(f"Neither thumbnail nor original present for media {media.id}")
        raise NotFoundError('Thumbnail not found')

    def open_file(self, path):
        """Binary read handle for a path returned by original_path or preview_path."""
        return self.file_storage.open_for_read(path)

    def delete_files(self, media):
        """Best-effort removal of an asset's original and thumbnail."""
        self.file_storage.delete(media.file_path)
        if media.thumbnail_path:
            self.file_storage.delete(media.thumbnail_path)

    def delete(self, user_id, media_id):
        """Delete files first, then the record."""
        media = self.get_owned(user_id, media_id)
        self.delete_files(media)
        try:
            self.session.delete(media)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to delete media record {media_id}: {e}", exc_info=True)
            raise InternalError('Failed to delete media')
        logger.info(f"Media deleted: id={media_id}, user_id={user_id}")


def get_media_service():
    return current_app.extensions['media_service']
