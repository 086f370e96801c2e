"""Input validation utilities."""
import html
import math
import re
import uuid
from datetime import datetime
import bleach
from shared.enums import FileType
from shared.models import APP_TIMEZONE


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class Validator:
    """Input validation utilities."""

    # Email pattern: local part must start/end with alphanumeric, no consecutive dots/special chars
    # Domain parts must start/end with alphanumeric, no consecutive dots/hyphens
    EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9]+([._%+-][a-zA-Z0-9]+)*@([a-zA-Z0-9]+([.-][a-zA-Z0-9]+)*\.)+[a-zA-Z]{2,}$')
    PASSWORD_MIN_LENGTH = 6

    @staticmethod
    def validate_required(value, field_name):
        """Validate that a required field is not empty."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field_name} is required")
        return value

    @staticmethod
    def validate_string_length(value, field_name, min_length=0, max_length=None):
        """Validate string length constraints on the trimmed value."""
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string")

        value = value.strip()
        if len(value) < min_length:
            raise ValidationError(f"{field_name} must be at least {min_length} characters")

        if max_length and len(value) > max_length:
            raise ValidationError(f"{field_name} must be no more than {max_length} characters")

        return value

    @staticmethod
    def validate_email(email):
        """Validate email format and normalise it for lookups."""
        if not isinstance(email, str):
            raise ValidationError("Invalid email format")
        email = email.strip().lower()
        if not Validator.EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")
        return email

    @staticmethod
    def validate_password(password):
        if not isinstance(password, str) or len(password) < Validator.PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {Validator.PASSWORD_MIN_LENGTH} characters")
        return password

    @staticmethod
    def _parse_coordinate(value, field_name, limit):
        try:
            number = float(value.strip()) if isinstance(value, str) else float(value)
        except ValueError:
            raise ValidationError(f"{field_name} must be a valid number")
        except TypeError:
            raise ValidationError(f"{field_name} must be a number or numeric string")

        if not math.isfinite(number):
            raise ValidationError(f"{field_name} must be a finite number")
        if not (-limit <= number <= limit):
            raise ValidationError(f"{field_name} must be between -{limit} and {limit}")
        return number

    @staticmethod
    def validate_coordinates(lat, lng):
        """Validate GPS coordinates.

        Returns:
            tuple: (latitude, longitude) as floats
        """
        return (
            Validator._parse_coordinate(lat, 'Latitude', 90),
            Validator._parse_coordinate(lng, 'Longitude', 180),
        )

    @staticmethod
    def validate_optional_coordinates(lat, lng):
        """Validate an optional coordinate pair.

        Blank values count as absent. Either both values are supplied or
        neither is; a lone latitude or longitude is rejected.

        Returns:
            tuple: (latitude, longitude), or (None, None) when both are absent
        """
        lat_missing = lat is None or (isinstance(lat, str) and not lat.strip())
        lng_missing = lng is None or (isinstance(lng, str) and not lng.strip())

        if lat_missing and lng_missing:
            return None, None
        if lat_missing or lng_missing:
            raise ValidationError("Latitude and longitude must be provided together")
        return Validator.validate_coordinates(lat, lng)

    @staticmethod
    def validate_uuid(value, field_name):
        """Validate that value is a canonical UUID string."""
        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a valid UUID")
        try:
            return str(uuid.UUID(value.strip()))
        except ValueError:
            raise ValidationError(f"{field_name} must be a valid UUID")

    @staticmethod
    def is_uuid(value):
        try:
            Validator.validate_uuid(value, 'id')
        except ValidationError:
            return False
        return True

    @staticmethod
    def validate_iso_timestamp(value, field_name):
        """Parse an ISO-8601 timestamp into an aware UTC datetime.

        Naive timestamps are taken to be UTC.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
        text = value.strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=APP_TIMEZONE)
        return parsed.astimezone(APP_TIMEZONE)

    @staticmethod
    def validate_choice(value, field_name, valid_choices):
        """Validate that value is in list of valid choices."""
        if value not in valid_choices:
            raise ValidationError(f"{field_name} must be one of: {', '.join(str(c) for c in valid_choices)}")
        return value

    @staticmethod
    def validate_file_type(value):
        Validator.validate_choice(value, 'fileType', [t.value for t in FileType])
        return FileType(value)

    @staticmethod
    def sanitize_html(text):
        """Strip markup with bleach and return plain text.

        Tags are removed and their text kept. Entities are decoded, so the
        stored value reads back as typed; escaping happens at render time.
        """
        if not text:
            return text

        if '<' not in text and '>' not in text and '&' not in text:
            return text

        return html.unescape(bleach.clean(text, tags=set(), attributes={}, strip=True))

    @staticmethod
    def _optional_text(data, key, field_name, max_length, sanitize=False):
        value = data[key]
        if value is None:
            return None
        value = Validator.validate_string_length(value, field_name, 0, max_length)
        if sanitize:
            value = Validator.sanitize_html(value).strip()
        return value or None

    @staticmethod
    def validate_project_data(data):
        """Validate project data for creation."""
        validated = {}

        validated['name'] = Validator.validate_required(
            Validator.validate_string_length(data.get('name', ''), 'Project name', 1, 200),
            'Project name'
        )

        if 'description' in data:
            validated['description'] = Validator._optional_text(
                data, 'description', 'Project description', 1000, sanitize=True
            )

        if 'address' in data:
            validated['address'] = Validator._optional_text(data, 'address', 'Project address', 500)

        validated['latitude'], validated['longitude'] = Validator.validate_optional_coordinates(
            data.get('latitude'), data.get('longitude')
        )

        return validated

    @staticmethod
    def validate_project_update(data, project):
        """Validate a partial project update.

        Only keys present in ``data`` are returned. A coordinate change is
        checked against the project's current pair so the result never holds
        one coordinate without the other.
        """
        validated = {}

        if 'name' in data:
            validated['name'] = Validator.validate_required(
                Validator.validate_string_length(data['name'], 'Project name', 1, 200),
                'Project name'
            )

        if 'description' in data:
            validated['description'] = Validator._optional_text(
                data, 'description', 'Project description', 1000, sanitize=True
            )

        if 'address' in data:
            validated['address'] = Validator._optional_text(data, 'address', 'Project address', 500)

        if 'latitude' in data or 'longitude' in data:
            lat = data['latitude'] if 'latitude' in data else project.latitude
            lng = data['longitude'] if 'longitude' in data else project.longitude
            validated['latitude'], validated['longitude'] = Validator.validate_optional_coordinates(lat, lng)

        return validated

    @staticmethod
    def validate_note_body(body):
        """Validate note text: required, plain text, non-empty once markup is stripped and trimmed."""
        if body is None or not isinstance(body, str) or not body.strip():
            raise ValidationError("Note body is required")
        body = Validator.validate_string_length(body, 'Note body', 1, 10000)
        body = Validator.sanitize_html(body).strip()
        if not body:
            raise ValidationError("Note body is required")
        return body
