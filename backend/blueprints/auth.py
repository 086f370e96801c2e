"""Authentication blueprint: registration, login, token refresh."""
import logging
from flask import Blueprint, request, jsonify, g
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import generate_password_hash, check_password_hash
from ..models import db, User
from ..errors import ValidationError, AuthError, ConflictError, InternalError, api_error
from ..services.token_service import get_token_service
from shared.enums import TokenType
from shared.schemas import RegisterRequest, LoginRequest, UserResponse, AuthResponse, format_validation_errors

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/api')

PUBLIC_ENDPOINTS = {'auth.register', 'auth.login', 'auth.refresh'}


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _parse(schema, data):
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e))


def _auth_payload(user):
    tokens = get_token_service()
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=tokens.issue_access_token(user.id, user.email),
        refresh_token=tokens.issue_refresh_token(user.id, user.email),
    ).to_json()


@bp.route('/auth/register', methods=['POST'])
def register():
    """Register a new user."""
    payload = _parse(RegisterRequest, _json_body())

    if db.session.query(User).filter_by(email=payload.email).first():
        raise ConflictError('User already exists')

    user = User(
        email=payload.email,
        password_hash=generate_password_hash(payload.password),
        name=payload.name,
    )
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.session.rollback()
        raise ConflictError('User already exists')
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Registration failed: {e}", exc_info=True)
        raise InternalError('Failed to register user')

    logger.info(f"User registered: id={user.id}")
    return jsonify(_auth_payload(user)), 201


@bp.route('/auth/login', methods=['POST'])
def login():
    """Check credentials and return a token pair."""
    payload = _parse(LoginRequest, _json_body())

    user = db.session.query(User).filter_by(email=payload.email).first()
    if not user or not check_password_hash(user.password_hash, payload.password):
        logger.info("Failed login attempt")
        raise AuthError('Invalid credentials')

    logger.info(f"User logged in: id={user.id}")
    return jsonify(_auth_payload(user))


@bp.route('/auth/refresh', methods=['POST'])
def refresh():
    """Exchange a refresh token for a new access token."""
    data = request.get_json(silent=True) or {}
    refresh_token = data.get('refreshToken') if isinstance(data, dict) else None
    if not refresh_token:
        return api_error('Refresh token required', 400)

    try:
        claims = get_token_service().verify(refresh_token, TokenType.REFRESH)
    except AuthError:
        raise AuthError('Invalid refresh token')

    access_token = get_token_service().issue_access_token(claims['userId'], claims.get('email'))
    return jsonify({'accessToken': access_token})


@bp.route('/auth/me', methods=['GET'])
def me():
    """Get current user info."""
    user = db.session.get(User, g.user_id)
    return jsonify(UserResponse.model_validate(user).to_json())


def init_auth(app):
    """Require a valid access token on every /api route except the public auth ones."""
    @app.before_request
    def check_auth():
        if not request.path.startswith('/api'):
            return
        if request.endpoint in PUBLIC_ENDPOINTS:
            return
        if request.method == 'OPTIONS':
            return

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return api_error('Authentication required', 401, 'info')

        token = auth_header[len('Bearer '):].strip()
        try:
            claims = get_token_service().verify(token, TokenType.ACCESS)
        except AuthError as e:
            return api_error(e.message, 401, 'info')

        if db.session.get(User, claims['userId']) is None:
            return api_error('Authentication required', 401, 'info')

        g.user_id = claims['userId']
