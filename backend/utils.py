"""Backend utility functions for the field documentation application."""
import os
import logging
from flask import current_app
from sqlalchemy import text
from .models import db, Media, Note


logger = logging.getLogger(__name__)

PHOTOS_DIRECTORY = 'photos'


def get_storage_resolver():
    return current_app.extensions['storage_resolver']


def get_file_storage():
    return current_app.extensions['file_storage']


def photo_file_path(filename):
    """Absolute path of a file stored by the simple photos endpoints."""
    return os.path.join(get_storage_resolver().flat_directory(PHOTOS_DIRECTORY), os.path.basename(filename))


def cascade_delete_project(project):
    """
    Remove the files belonging to a project and count its child records.

    The child rows themselves go with the project (ORM cascade and FK
    ON DELETE CASCADE); files are deleted best-effort beforehand.

    Args:
        project (Project): Project about to be deleted

    Returns:
        dict: Summary of child records removed
    """
    file_storage = get_file_storage()
    summary = {
        'media': 0,
        'notes': 0,
        'photos': 0
    }

    media_items = db.session.query(Media).filter(Media.project_id == project.id).all()
    for media in media_items:
        file_storage.delete(media.file_path)
        if media.thumbnail_path:
            file_storage.delete(media.thumbnail_path)
    summary['media'] = len(media_items)

    summary['notes'] = db.session.query(Note).filter(Note.project_id == project.id).count()

    photo_rows = db.session.execute(
        text('SELECT filename FROM photos WHERE project_id = :project_id'),
        {'project_id': project.id}
    ).all()
    for row in photo_rows:
        file_storage.delete(photo_file_path(row.filename))
    summary['photos'] = len(photo_rows)

    logger.info(f"Cascading delete prepared for project {project.id}: {summary}")
    return summary


def find_missing_media_files():
    """
    Find media records whose files are no longer on disk.

    Returns:
        dict: {'originals': [media ids], 'thumbnails': [media ids]}
    """
    file_storage = get_file_storage()
    missing = {'originals': [], 'thumbnails': []}

    for media in db.session.query(Media).order_by(Media.uploaded_at).all():
        if not file_storage.exists(media.file_path):
            missing['originals'].append(media.id)
        if media.thumbnail_path and not file_storage.exists(media.thumbnail_path):
            missing['thumbnails'].append(media.id)

    return missing


def find_orphan_files():
    """
    List files under the upload root that no record references.

    Returns:
        list: Absolute paths of unreferenced files
    """
    resolver = get_storage_resolver()
    referenced = set()

    for file_path, thumbnail_path in db.session.query(Media.file_path, Media.thumbnail_path):
        referenced.add(os.path.realpath(file_path))
        if thumbnail_path:
            referenced.add(os.path.realpath(thumbnail_path))

    for row in db.session.execute(text('SELECT filename FROM photos')).all():
        referenced.add(os.path.realpath(photo_file_path(row.filename)))

    orphans = []
    for dirpath, _dirnames, filenames in os.walk(resolver.upload_root):
        for name in filenames:
            path = os.path.realpath(os.path.join(dirpath, name))
            if path not in referenced:
                orphans.append(path)

    return sorted(orphans)
