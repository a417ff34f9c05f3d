from typing import Dict
from app.database import DatabaseManager, get_db
from app.models import User, AccessLevel
from app.utils.errors import AuthenticationError, NotFoundError, ValidationError
from app.utils.security import hash_password, verify_password, generate_token, verify_token
from app.utils.validators import validate_email, validate_password, validate_required_text
from app.utils.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    """Service for handling authentication"""
    
    def __init__(self):
        self.user_db = DatabaseManager(User)
    
    def _serialize_user(self, user: User) -> Dict:
        return {
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'username': user.username,
            'access_level': user.access_level.value
        }
    
    def _issue_token(self, user: User) -> str:
        return generate_token({
            'user_id': user.id,
            'email': user.email,
            'role': user.access_level.value
        })
    
    def register_user(self, data: Dict, access_level: AccessLevel = AccessLevel.USER) -> Dict:
        """Register a new user"""
        valid, error = validate_required_text(data.get('name'), 'Name')
        if not valid:
            raise ValidationError(error)
        
        email = (data.get('email') or '').strip().lower()
        valid, error = validate_email(email)
        if not valid:
            raise ValidationError(error)
        
        valid, error = validate_password(data.get('password') or '')
        if not valid:
            raise ValidationError(error)
        
        username = (data.get('username') or '').strip() or None
        
        # Check if user already exists
        if self.user_db.exists(email=email):
            raise ValidationError('Email already registered')
        if username and self.user_db.exists(username=username):
            raise ValidationError('Username already taken')
        
        user = self.user_db.create(
            name=data['name'].strip(),
            email=email,
            username=username,
            password_hash=hash_password(data['password']),
            access_level=access_level
        )
        
        logger.info(f"Registered user {user.id} ({access_level.value})")
        
        return {'user_id': user.id, 'success': True}
    
    def authenticate_user(self, email: str, password: str) -> Dict:
        """Authenticate user and return token"""
        with get_db() as db:
            user = db.query(User).filter(User.email == (email or '').strip().lower()).first()
            
            if not user or not verify_password(password, user.password_hash):
                raise AuthenticationError('Invalid credentials')
            
            return {
                'access_token': self._issue_token(user),
                'user': self._serialize_user(user)
            }
    
    def refresh_token(self, token: str) -> Dict:
        """Issue a new access token for a still-valid one"""
        payload = verify_token(token)
        if not payload:
            raise AuthenticationError('Invalid token')
        
        user = self.user_db.get(payload.get('user_id'))
        if not user:
            raise AuthenticationError('Invalid token')
        
        return {'access_token': self._issue_token(user)}
    
    def get_user(self, user_id: int) -> Dict:
        """Get user profile"""
        user = self.user_db.get(user_id)
        if not user:
            raise NotFoundError('User not found')
        return self._serialize_user(user)
    
    def set_access_level(self, user_id: int, access_level: AccessLevel) -> Dict:
        """Promote or demote a user (used by the admin CLI)"""
        user = self.user_db.update(user_id, access_level=access_level)
        if not user:
            raise NotFoundError('User not found')
        
        logger.info(f"User {user_id} access level set to {access_level.value}")
        return self._serialize_user(user)
