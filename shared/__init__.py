"""Shared package for the field documentation backend.

Code here does not depend on Flask and can be imported by tooling and tests
on its own:

- Database models (models.py) - SQLAlchemy declarative models
- Enums (enums.py) - media file types and token kinds
- Validation utilities (validation.py, schemas.py) - input validation and API serialization
- Utility functions (utils.py) - thumbnail generation
"""
