import click
import logging
from flask.cli import with_appcontext
from .models import db
from .utils import find_missing_media_files, find_orphan_files, get_file_storage

logger = logging.getLogger(__name__)


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create database tables."""
    logger.info("Starting database initialization")
    db.create_all()
    logger.info("Database tables created successfully")
    click.echo('Initialized the database.')


@click.command('check-media-integrity')
@with_appcontext
def check_media_integrity_command():
    """Report media records whose files are missing from disk."""
    logger.info("Starting media file integrity check")
    missing = find_missing_media_files()

    if not missing['originals'] and not missing['thumbnails']:
        click.echo('All media files present.')
        logger.info("Media file integrity check completed with no issues")
        return

    for media_id in missing['originals']:
        click.echo(f'Missing original: {media_id}')
    for media_id in missing['thumbnails']:
        click.echo(f'Missing thumbnail: {media_id}')
    click.echo(f"{len(missing['originals'])} missing original(s), {len(missing['thumbnails'])} missing thumbnail(s).")
    logger.warning(
        f"Media file integrity check found {len(missing['originals'])} missing originals "
        f"and {len(missing['thumbnails'])} missing thumbnails"
    )


@click.command('cleanup-orphan-files')
@click.option('--dry-run', is_flag=True, help='List unreferenced files without deleting them.')
@with_appcontext
def cleanup_orphan_files_command(dry_run):
    """Delete files under the upload root that no record references."""
    logger.info(f"Starting orphan file cleanup (dry_run={dry_run})")
    orphans = find_orphan_files()
    file_storage = get_file_storage()

    removed = 0
    for path in orphans:
        if dry_run:
            click.echo(f'Would delete: {path}')
        elif file_storage.delete(path):
            click.echo(f'Deleted: {path}')
            removed += 1

    if dry_run:
        click.echo(f'{len(orphans)} orphan file(s) found.')
    else:
        click.echo(f'{removed} orphan file(s) deleted.')
    logger.info(f"Orphan file cleanup finished: found={len(orphans)}, deleted={removed}")
