"""Flask application factory for the field documentation backend."""
from flask import Flask
import logging
from pathlib import Path
from .config import Config, UploadConfig, max_content_length
from .models import db
from .errors import register_error_handlers
from .blueprints import auth, projects, media, upload, notes, photos
from .cli import init_db_command, check_media_integrity_command, cleanup_orphan_files_command
from .logging_config import setup_logging
from .services.storage import StoragePathResolver, FileStorage
from .services.thumbnails import ThumbnailDeriver
from .services.upload_service import UploadService
from .services.media_service import MediaService
from .services.token_service import TokenService

logger = logging.getLogger(__name__)


def init_services(app):
    """Build the storage and upload services from app config.

    The upload root and upload policy are read here once and injected;
    nothing downstream consults the environment.
    """
    resolver = StoragePathResolver(app.config['UPLOAD_DIR'])
    file_storage = FileStorage()
    upload_config = UploadConfig.from_mapping(app.config)

    app.extensions['storage_resolver'] = resolver
    app.extensions['file_storage'] = file_storage
    app.extensions['upload_service'] = UploadService(
        db.session,
        resolver,
        file_storage,
        ThumbnailDeriver(resolver, file_storage),
        upload_config,
    )
    app.extensions['media_service'] = MediaService(db.session, file_storage, resolver)
    app.extensions['token_service'] = TokenService.from_config(app.config)

    logger.info("Services initialized", extra={
        'extra_fields': {
            'upload_dir': str(resolver.upload_root),
            'max_file_size': upload_config.max_file_size,
            'allowed_types': sorted(upload_config.allowed_types),
        }
    })


def create_app(test_config=None):
    """Flask application factory.

    Creates and configures a Flask application instance with:
    - SQLAlchemy database integration
    - Local asset storage and the upload pipeline
    - Blueprint registration for API endpoints
    - Token authentication
    - CLI command registration
    - Logging configuration

    Args:
        test_config (dict, optional): Configuration overrides for testing

    Returns:
        Flask: Configured Flask application instance
    """
    overrides = test_config or {}
    setup_logging(overrides.get('LOG_DIR'), overrides.get('LOG_LEVEL'))
    logger.info("Starting Flask application initialization")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    if test_config is None:
        # Load the instance config, if it exists, when not testing
        config_loaded = app.config.from_pyfile('config.py', silent=True)
        if config_loaded:
            logger.info("Loaded configuration from instance/config.py")
        else:
            logger.debug("No instance config file found, using defaults")
    else:
        app.config.from_mapping(test_config)
        logger.info("Loaded test configuration")

    app.config['MAX_CONTENT_LENGTH'] = max_content_length(app.config)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    Path(app.config['UPLOAD_DIR']).mkdir(parents=True, exist_ok=True)
    logger.info(f"Using database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")

    db.init_app(app)
    logger.info("SQLAlchemy database initialized")

    init_services(app)
    register_error_handlers(app)

    logger.info("Registering API blueprints")
    for blueprint in (auth.bp, projects.bp, media.bp, upload.bp, notes.bp, photos.bp):
        app.register_blueprint(blueprint)
        logger.debug(f"Registered {blueprint.name} blueprint")
    logger.info("All API blueprints registered successfully")

    auth.init_auth(app)
    logger.info("Authentication system initialized")

    app.cli.add_command(init_db_command)
    app.cli.add_command(check_media_integrity_command)
    app.cli.add_command(cleanup_orphan_files_command)
    logger.info("CLI commands registered: init-db, check-media-integrity, cleanup-orphan-files")

    logger.info("Flask application initialization completed successfully")
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
