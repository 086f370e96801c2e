"""Signed access and refresh tokens (HS256 JWTs)."""

import logging
from datetime import timedelta
from flask import current_app
from jose import jwt, JWTError, ExpiredSignatureError
from shared.enums import TokenType
from shared.models import now
from ..errors import AuthError


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenService:
    def __init__(self, access_secret, refresh_secret, access_ttl, refresh_ttl):
        self._secrets = {
            TokenType.ACCESS: access_secret,
            TokenType.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenType.ACCESS: int(access_ttl),
            TokenType.REFRESH: int(refresh_ttl),
        }

    @classmethod
    def from_config(cls, config):
        return cls(
            config['JWT_SECRET'],
            config['JWT_REFRESH_SECRET'],
            config['JWT_EXPIRES_IN'],
            config['JWT_REFRESH_EXPIRES_IN'],
        )

    def _issue(self, token_type, user_id, email):
        issued = now()
        claims = {
            'userId': user_id,
            'email': email,
            'type': token_type.value,
            'iat': int(issued.timestamp()),
            'exp': int((issued + timedelta(seconds=self._ttls[token_type])).timestamp()),
        }
        return jwt.encode(claims, self._secrets[token_type], algorithm=ALGORITHM)

    def issue_access_token(self, user_id, email):
        return self._issue(TokenType.ACCESS, user_id, email)

    def issue_refresh_token(self, user_id, email):
        return self._issue(TokenType.REFRESH, user_id, email)

    def verify(self, token, token_type):
        """Decode and check a token of the given kind.

        Returns:
            dict: The token claims

        Raises:
            AuthError: If the token is malformed, expired, forged or of the wrong kind
        """
        if not token or not isinstance(token, str):
            raise AuthError('Invalid token')
        try:
            claims = jwt.decode(token, self._secrets[token_type], algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            logger.info(f"Expired {token_type.value} token presented")
            raise AuthError('Token expired')
        except JWTError as e:
            logger.info(f"Rejected {token_type.value} token: {e}")
            raise AuthError('Invalid token')

        if claims.get('type') != token_type.value or not claims.get('userId'):
            raise AuthError('Invalid token')
        return claims


def get_token_service():
    return current_app.extensions['token_service']
