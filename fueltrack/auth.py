import logging
from typing import Any, Dict, Optional, Tuple

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from .config import AUTH_CONFIG
from .constants import ErrorMessages
from .errors import ApiError, AuthError, NotFoundError
from .fuel_data_service import FuelDataService

logger = logging.getLogger(__name__)


class AuthService:
    """Password accounts and signed bearer tokens."""

    def __init__(self, data: FuelDataService, secret: Optional[str] = None,
                 max_age_seconds: Optional[int] = None) -> None:
        self.data = data
        self.max_age_seconds = max_age_seconds or AUTH_CONFIG['TOKEN_MAX_AGE_SECONDS']
        self.serializer = URLSafeTimedSerializer(secret or AUTH_CONFIG['JWT_SECRET'],
                                                 salt=AUTH_CONFIG['TOKEN_SALT'])

    def issue_token(self, user_id: Any) -> str:
        return self.serializer.dumps({'id': str(user_id)})

    def user_id_from_token(self, token: str) -> str:
        try:
            payload = self.serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            raise AuthError(ErrorMessages.EXPIRED_TOKEN)
        except BadSignature:
            raise AuthError(ErrorMessages.INVALID_TOKEN)
        if not isinstance(payload, dict) or not payload.get('id'):
            raise AuthError(ErrorMessages.INVALID_TOKEN)
        return payload['id']

    def authenticate(self, authorization: Optional[str]) -> Dict[str, Any]:
        """Resolve an Authorization header to the stored user document."""
        if not authorization or not authorization.startswith('Bearer '):
            raise AuthError(ErrorMessages.NO_TOKEN)
        user_id = self.user_id_from_token(authorization[len('Bearer '):].strip())
        try:
            user = self.data.get_user(user_id)
        except NotFoundError:
            user = None
        if user is None:
            raise AuthError(ErrorMessages.INVALID_TOKEN)
        return user

    def _check_password_rules(self, password: Optional[str]) -> None:
        if not password or len(password) < AUTH_CONFIG['MIN_PASSWORD_LENGTH']:
            raise ApiError(f"Password must be at least {AUTH_CONFIG['MIN_PASSWORD_LENGTH']} characters")

    def register(self, email: Optional[str], password: Optional[str],
                 name: Optional[str]) -> Tuple[str, Dict[str, Any]]:
        if not email or not name:
            raise ApiError("Email, password and name are required")
        self._check_password_rules(password)
        if self.data.find_user_by_email(email) is not None:
            raise ApiError(ErrorMessages.EMAIL_TAKEN)

        user = self.data.create_user(email, generate_password_hash(password), name)
        logger.info(f"Registered user {user['_id']}")
        return self.issue_token(user['_id']), user

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[str, Dict[str, Any]]:
        user = self.data.find_user_by_email(email or '')
        if user is None or not check_password_hash(user['password_hash'], password or ''):
            raise AuthError(ErrorMessages.INVALID_CREDENTIALS)
        return self.issue_token(user['_id']), user

    def change_password(self, user: Dict[str, Any], current_password: Optional[str],
                        new_password: Optional[str]) -> None:
        if not check_password_hash(user['password_hash'], current_password or ''):
            raise ApiError("Current password is incorrect")
        self._check_password_rules(new_password)
        self.data.set_password_hash(user['_id'], generate_password_hash(new_password))
