from functools import wraps
from flask import request, jsonify
from app.utils.security import verify_token
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _bearer_token():
    """Return (token, error) from the Authorization header"""
    auth_header = request.headers.get('Authorization')
    
    if not auth_header:
        return None, 'Authorization header missing'
    
    # Check format
    parts = auth_header.split()
    if len(parts) != 2 or parts[0] != 'Bearer':
        return None, 'Invalid authorization header format'
    
    return parts[1], None


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token, error = _bearer_token()
        if error:
            return jsonify({'error': error}), 401
        
        # Verify token
        payload = verify_token(token)
        if not payload:
            return jsonify({'error': 'Invalid or expired token'}), 401
        
        # Add user info to kwargs
        return f(*args, current_user=payload, **kwargs)
    
    return decorated_function


def optional_auth(f):
    """Decorator that passes current_user=None for anonymous callers"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token, error = _bearer_token()
        payload = verify_token(token) if token else None
        return f(*args, current_user=payload, **kwargs)
    
    return decorated_function


def require_role(allowed_roles):
    """Decorator to require specific roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, current_user, **kwargs):
            if current_user.get('role') not in allowed_roles:
                return jsonify({'error': 'Insufficient permissions'}), 403
            return f(*args, current_user=current_user, **kwargs)
        return decorated_function
    return decorator


def require_admin(f):
    """Decorator to require admin role"""
    return require_role(['system_admin'])(f)
