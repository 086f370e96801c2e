"""Simple project photos blueprint.

A lighter photo store kept alongside the media pipeline: files land flat in
the photos directory under a random name, no thumbnails are derived, and the
``photos`` table is accessed with hand-written SQL.
"""
import os
import uuid
import logging
from flask import Blueprint, current_app, jsonify, request, g
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from ..models import db, now
from ..errors import ValidationError, NotFoundError, InternalError
from ..utils import get_file_storage, photo_file_path
from shared.schemas import PhotoResponse
from shared.validation import Validator

logger = logging.getLogger(__name__)

bp = Blueprint('photos', __name__, url_prefix='/api')

CHUNK_SIZE = 64 * 1024


def get_owned_project(project_id):
    if not Validator.is_uuid(project_id):
        raise NotFoundError('Project not found')
    row = db.session.execute(
        text('SELECT id FROM projects WHERE id = :id AND user_id = :user_id'),
        {'id': project_id, 'user_id': g.user_id}
    ).first()
    if row is None:
        raise NotFoundError('Project not found')
    return row.id


def _storage_timestamp():
    # Same text layout SQLAlchemy's SQLite DateTime type writes and parses
    return now().replace(tzinfo=None).strftime('%Y-%m-%d %H:%M:%S.%f')


def _read_image(upload, max_size):
    if not (upload.mimetype or '').startswith('image/'):
        raise ValidationError('Only image files are allowed')

    chunks = []
    total = 0
    while True:
        chunk = upload.stream.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValidationError(f'File too large. Maximum size: {max_size} bytes')
        chunks.append(chunk)
    return b''.join(chunks)


@bp.route('/projects/<project_id>/photos', methods=['GET'])
def list_photos(project_id):
    project_id = get_owned_project(project_id)
    rows = db.session.execute(
        text('SELECT * FROM photos WHERE project_id = :project_id ORDER BY uploaded_at DESC, id DESC'),
        {'project_id': project_id}
    ).mappings().all()
    return jsonify([PhotoResponse.model_validate(dict(row)).to_json() for row in rows])


@bp.route('/projects/<project_id>/photos', methods=['POST'])
def upload_photos(project_id):
    """Upload up to PHOTO_MAX_FILES images in the ``photos`` field."""
    project_id = get_owned_project(project_id)

    uploads = [f for f in request.files.getlist('photos') if f and f.filename]
    if not uploads:
        raise ValidationError('No files uploaded')

    max_files = current_app.config['PHOTO_MAX_FILES']
    if len(uploads) > max_files:
        raise ValidationError(f'Too many files. Maximum: {max_files}')

    max_size = current_app.config['PHOTO_MAX_FILE_SIZE']
    # Validate every file before writing any
    payloads = [(upload, _read_image(upload, max_size)) for upload in uploads]

    file_storage = get_file_storage()
    written = []
    inserted_ids = []
    try:
        for upload, data in payloads:
            ext = os.path.splitext(upload.filename)[1].lower()
            filename = f"{uuid.uuid4()}{ext}"
            written.append(file_storage.save(photo_file_path(filename), data))

            result = db.session.execute(
                text(
                    'INSERT INTO photos (project_id, filename, original_name, mimetype, size, uploaded_at) '
                    'VALUES (:project_id, :filename, :original_name, :mimetype, :size, :uploaded_at)'
                ),
                {
                    'project_id': project_id,
                    'filename': filename,
                    'original_name': upload.filename,
                    'mimetype': upload.mimetype,
                    'size': len(data),
                    'uploaded_at': _storage_timestamp(),
                }
            )
            inserted_ids.append(result.lastrowid)
        db.session.commit()
    except (OSError, SQLAlchemyError) as e:
        db.session.rollback()
        for path in written:
            file_storage.delete(path)
        logger.error(f"Failed to store photos for project {project_id}: {e}", exc_info=True)
        raise InternalError('Failed to upload photos')

    rows = [
        db.session.execute(text('SELECT * FROM photos WHERE id = :id'), {'id': photo_id}).mappings().first()
        for photo_id in inserted_ids
    ]
    logger.info(f"Uploaded {len(rows)} photo(s) to project {project_id}")
    return jsonify([PhotoResponse.model_validate(dict(row)).to_json() for row in rows]), 201


@bp.route('/projects/<project_id>/photos/<int:photo_id>', methods=['DELETE'])
def delete_photo(project_id, photo_id):
    project_id = get_owned_project(project_id)
    row = db.session.execute(
        text('SELECT * FROM photos WHERE id = :id AND project_id = :project_id'),
        {'id': photo_id, 'project_id': project_id}
    ).mappings().first()
    if row is None:
        raise NotFoundError('Photo not found')

    get_file_storage().delete(photo_file_path(row['filename']))

    try:
        db.session.execute(text('DELETE FROM photos WHERE id = :id'), {'id': photo_id})
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to delete photo {photo_id}: {e}", exc_info=True)
        raise InternalError('Failed to delete photo')

    logger.info(f"Photo deleted: id={photo_id}, project_id={project_id}")
    return '', 204
