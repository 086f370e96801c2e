"""Base CRUD class for Flask blueprints."""
from flask import jsonify, request, g
from typing import Type, Optional, Dict, Any, Callable
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase
from shared.validation import Validator
from ..errors import ValidationError, NotFoundError, InternalError
from ..models import db
import logging


class OwnedCRUDBase:
    """Base class providing CRUD operations scoped to the requesting user.

    Every lookup is filtered by the owner column, so a resource that belongs
    to someone else behaves exactly like one that does not exist.

    Subclasses should override:
    - serialize() - to customize serialization
    - validate_create_data() - to customize creation validation
    - validate_update_data() - to customize update validation
    """

    owner_column = 'user_id'

    def __init__(self, model_class: Type[DeclarativeBase], logger_name: Optional[str] = None,
                 singular_name: Optional[str] = None):
        """Initialize CRUD base class.

        Args:
            model_class: SQLAlchemy model class
            logger_name: Optional logger name (defaults to class name)
            singular_name: Resource name used in messages
        """
        self.model = model_class
        self.logger = logging.getLogger(logger_name or self.__class__.__name__)
        self.singular_name = singular_name or self.model.__tablename__.rstrip('s')

    def current_user_id(self) -> str:
        return g.user_id

    def owned_query(self):
        return db.session.query(self.model).filter(getattr(self.model, self.owner_column) == self.current_user_id())

    def get_owned(self, resource_id):
        """Fetch a resource owned by the caller or raise NotFoundError."""
        if not Validator.is_uuid(resource_id):
            raise NotFoundError(f'{self.singular_name.title()} not found')
        resource = self.owned_query().filter(self.model.id == resource_id).first()
        if resource is None:
            raise NotFoundError(f'{self.singular_name.title()} not found')
        return resource

    def get_detail(self, resource_id):
        resource = self.get_owned(resource_id)
        return jsonify(self.serialize_detail(resource))

    def create(self, validate_func: Optional[Callable] = None):
        """Create a resource owned by the caller."""
        data = self.get_json_data()
        validated_data = validate_func(data) if validate_func else self.validate_create_data(data)
        validated_data[self.owner_column] = self.current_user_id()

        resource = self.model(**validated_data)
        try:
            db.session.add(resource)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.logger.error(f"Failed to create {self.singular_name}: {e}", exc_info=True)
            raise InternalError(f'Failed to create {self.singular_name}')

        self.logger.info(f"Created {self.singular_name}: {resource.id} - {getattr(resource, 'name', 'N/A')}")
        return jsonify(self.serialize(resource)), 201

    def update(self, resource_id, validate_func: Optional[Callable] = None):
        """Apply a partial update to a resource owned by the caller."""
        data = self.get_json_data()
        resource = self.get_owned(resource_id)
        validated_data = validate_func(data, resource) if validate_func else self.validate_update_data(data, resource)

        for key, value in validated_data.items():
            setattr(resource, key, value)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.logger.error(f"Failed to update {self.singular_name} {resource_id}: {e}", exc_info=True)
            raise InternalError(f'Failed to update {self.singular_name}')

        self.logger.info(f"Updated {self.singular_name}: {resource_id}")
        return jsonify(self.serialize(resource))

    def delete(self, resource_id, cascade_func: Optional[Callable] = None):
        """Delete a resource owned by the caller.

        Args:
            resource_id: Primary key ID of the resource
            cascade_func: Optional function taking the resource and returning a summary dict
        """
        resource = self.get_owned(resource_id)
        try:
            summary = cascade_func(resource) if cascade_func else {}
            db.session.delete(resource)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.logger.error(f"Failed to delete {self.singular_name} {resource_id}: {e}", exc_info=True)
            raise InternalError(f'Failed to delete {self.singular_name}')

        self.logger.info(f"Deleted {self.singular_name}: {resource_id}")
        return jsonify({
            'message': f'{self.singular_name.title()} deleted successfully',
            'summary': summary
        })

    def serialize(self, resource) -> Dict[str, Any]:
        """Serialize resource to dictionary.

        Subclasses should override this method to customize serialization.
        """
        result = {}
        for column in resource.__table__.columns:
            value = getattr(resource, column.name)
            if hasattr(value, 'isoformat'):
                result[column.name] = value.isoformat()
            elif hasattr(value, 'value'):
                result[column.name] = value.value
            else:
                result[column.name] = value
        return result

    def serialize_detail(self, resource) -> Dict[str, Any]:
        return self.serialize(resource)

    def get_json_data(self) -> Dict[str, Any]:
        """Get and validate JSON data from request.

        Raises:
            ValidationError: If JSON is invalid or not a dict
        """
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError('Request body must contain valid JSON')
        if not isinstance(data, dict):
            raise ValidationError('Request data must be a JSON object')
        return data

    def validate_create_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    def validate_update_data(self, data: Dict[str, Any], resource) -> Dict[str, Any]:
        return data
