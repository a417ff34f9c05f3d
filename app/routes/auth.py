from flask import Blueprint, request, jsonify
from app.services.auth_service import AuthService
from app.middleware.auth import require_auth
from app.utils.errors import JCEPError
from app.utils.logger import get_logger

bp = Blueprint('auth', __name__)
logger = get_logger(__name__)
auth_service = AuthService()


@bp.route('/register', methods=['POST'])
def register():
    """Register a new user"""
    try:
        data = request.get_json(silent=True) or {}
        
        # Validate required fields
        required_fields = ['name', 'email', 'password']
        for field in required_fields:
            if field not in data:
                return jsonify({'error': f'{field} is required'}), 400
        
        result = auth_service.register_user(data)
        
        return jsonify({
            'message': 'Registration successful',
            'user_id': result['user_id']
        }), 201
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Registration error: {str(e)}")
        return jsonify({'error': 'Registration failed'}), 500


@bp.route('/login', methods=['POST'])
def login():
    """Login user"""
    try:
        data = request.get_json(silent=True) or {}
        
        # Validate required fields
        if not data.get('email') or not data.get('password'):
            return jsonify({'error': 'Email and password are required'}), 400
        
        result = auth_service.authenticate_user(data['email'], data['password'])
        return jsonify(result), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Login error: {str(e)}")
        return jsonify({'error': 'Login failed'}), 500


@bp.route('/me', methods=['GET'])
@require_auth
def me(current_user):
    """Get the logged-in user"""
    try:
        return jsonify(auth_service.get_user(current_user['user_id'])), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting user: {str(e)}")
        return jsonify({'error': 'Failed to get user'}), 500


@bp.route('/refresh-token', methods=['POST'])
def refresh_token():
    """Refresh access token"""
    try:
        # Get token from Authorization header
        auth_header = request.headers.get('Authorization')
        if not auth_header or not auth_header.startswith('Bearer '):
            return jsonify({'error': 'Invalid authorization header'}), 401
        
        token = auth_header.split(' ')[1]
        
        result = auth_service.refresh_token(token)
        return jsonify({'access_token': result['access_token']}), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Token refresh error: {str(e)}")
        return jsonify({'error': 'Token refresh failed'}), 500


@bp.route('/logout', methods=['POST'])
def logout():
    """Logout user (client should discard token)"""
    # In a stateless JWT system, logout is handled client-side
    return jsonify({'message': 'Logout successful'}), 200
