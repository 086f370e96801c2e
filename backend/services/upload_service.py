"""Upload orchestration: validate, store, derive a thumbnail, record."""

import logging
import time
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename
from shared.enums import FileType
from shared.models import Media, Project, now
from shared.validation import Validator, ValidationError as InputValidationError
from ..errors import ValidationError, NotFoundError, InternalError


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def stored_filename(original_filename, timestamp_ms=None):
    """``{epochMillis}-{safeName}`` for an uploaded original."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_name = secure_filename(original_filename or '') or 'upload'
    return f"{timestamp_ms}-{safe_name}"


class StagedFiles:
    """Files written during one upload, removable if the record never lands."""

    def __init__(self, file_storage):
        self.file_storage = file_storage
        self.paths = []

    def add(self, path):
        if path:
            self.paths.append(path)
        return path

    def rollback(self):
        for path in reversed(self.paths):
            self.file_storage.delete(path)
        logger.info(f"Rolled back {len(self.paths)} staged file(s)")
        self.paths = []


class UploadService:
    """Runs a single asset upload end to end.

    Every validation happens before the first byte is written. Files are
    written first and the record committed second; if the commit fails the
    written files are removed again.
    """

    def __init__(self, session, resolver, file_storage, thumbnail_deriver, upload_config):
        self.session = session
        self.resolver = resolver
        self.file_storage = file_storage
        self.thumbnail_deriver = thumbnail_deriver
        self.config = upload_config

    def _owned_project(self, user_id, project_id):
        if project_id is None or (isinstance(project_id, str) and not project_id.strip()):
            raise ValidationError('projectId is required')
        if not Validator.is_uuid(project_id):
            raise NotFoundError('Project not found')
        project = self.session.query(Project).filter_by(
            id=Validator.validate_uuid(project_id, 'projectId'), user_id=user_id
        ).first()
        if project is None:
            raise NotFoundError('Project not found')
        return project

    def _read_limited(self, upload):
        """Read the upload stream, refusing to buffer past the size limit."""
        limit = self.config.max_file_size
        declared = getattr(upload, 'content_length', None)
        if declared and declared > limit:
            raise ValidationError(f'File too large. Maximum size: {limit} bytes')

        chunks = []
        total = 0
        while True:
            chunk = upload.stream.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > limit:
                raise ValidationError(f'File too large. Maximum size: {limit} bytes')
            chunks.append(chunk)

        if total == 0:
            raise ValidationError('Empty file')
        return b''.join(chunks)

    def upload(self, user_id, project_id, upload, latitude=None, longitude=None, captured_at=None):
        """Store an uploaded asset and create its Media record.

        Args:
            user_id: Authenticated user id
            project_id: Target project id as received
            upload: werkzeug FileStorage (or anything with stream/filename/mimetype)
            latitude, longitude: Optional coordinate pair as received
            captured_at: Optional ISO-8601 capture time

        Returns:
            Media: The committed record

        Raises:
            NotFoundError: Project missing, malformed or owned by someone else
            ValidationError: Bad file, type, size, coordinates or timestamp
            InternalError: Storage or record write failed
        """
        project = self._owned_project(user_id, project_id)

        if upload is None or not upload.filename:
            raise ValidationError('No file provided')

        mime_type = (upload.mimetype or '').lower()
        if not self.config.is_allowed(mime_type):
            logger.warning(f"Rejected upload with disallowed type {mime_type!r} for project {project.id}")
            raise ValidationError('Invalid file type')

        data = self._read_limited(upload)

        try:
            lat, lng = Validator.validate_optional_coordinates(latitude, longitude)
            if captured_at is not None and str(captured_at).strip():
                captured = Validator.validate_iso_timestamp(captured_at, 'capturedAt')
            else:
                captured = None
        except InputValidationError as e:
            raise ValidationError(str(e))

        file_type = FileType.from_mime_type(mime_type)
        filename = stored_filename(upload.filename)
        staged = StagedFiles(self.file_storage)

        try:
            file_path = staged.add(
                self.file_storage.save(self.resolver.path_for(user_id, project.id, filename), data)
            )
        except OSError as e:
            logger.error(f"Failed to store upload {filename} for project {project.id}: {e}", exc_info=True)
            staged.rollback()
            raise InternalError('Failed to store file')

        thumbnail_path = None
        if file_type == FileType.PHOTO:
            try:
                thumbnail_path = staged.add(
                    self.thumbnail_deriver.derive(data, user_id, project.id, filename)
                )
            except Exception as e:
                # Uploads succeed without a preview
                logger.warning(f"Thumbnail generation failed for {filename}: {e}")
                thumbnail_path = None

        uploaded = now()
        media = Media(
            project_id=project.id,
            user_id=user_id,
            file_type=file_type,
            file_path=file_path,
            thumbnail_path=thumbnail_path,
            file_size=len(data),
            mime_type=mime_type,
            latitude=lat,
            longitude=lng,
            captured_at=captured or uploaded,
            uploaded_at=uploaded,
        )

        try:
            self.session.add(media)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to record upload {filename} for project {project.id}: {e}", exc_info=True)
            staged.rollback()
            raise InternalError('Failed to save media record')

        logger.info(
            f"Media uploaded: id={media.id}, project_id={project.id}, type={file_type.value}, "
            f"size={len(data)} bytes, thumbnail={'yes' if thumbnail_path else 'no'}"
        )
        return media


def get_upload_service():
    return current_app.extensions['upload_service']
