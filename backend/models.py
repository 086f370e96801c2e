import logging
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from shared.models import Base, User, Project, Media, Note, Photo, now
from shared.enums import FileType

logger = logging.getLogger(__name__)
db = SQLAlchemy(model_class=Base)


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on FK enforcement for SQLite so deletes cascade at the store level."""
    module = type(dbapi_connection).__module__
    if not module.startswith(('sqlite3', 'pysqlite')):
        return
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON;")
    finally:
        cursor.close()
