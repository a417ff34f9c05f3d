import pytest
from app.services.auth_service import AuthService
from app.database import DatabaseManager
from app.models import User, AccessLevel
from app.utils.errors import AuthenticationError, ValidationError
from app.utils.security import generate_token, verify_token


@pytest.fixture
def auth_service(db):
    """Create auth service instance"""
    return AuthService()


class TestAuthService:
    """Test authentication service"""
    
    def test_register_user(self, auth_service):
        """Test user registration"""
        user_data = {
            'name': 'Grace Tan',
            'email': 'Grace.Tan@Example.com',
            'password': 'SecurePass123'
        }
        
        result = auth_service.register_user(user_data)
        assert 'user_id' in result
        assert result['success'] is True
        
        user = DatabaseManager(User).get(result['user_id'])
        assert user.email == 'grace.tan@example.com'
        assert user.access_level == AccessLevel.USER
        assert not user.is_admin
    
    def test_register_duplicate_email(self, auth_service):
        """Test duplicate email registration"""
        user_data = {
            'name': 'First',
            'email': 'duplicate@example.com',
            'password': 'SecurePass123'
        }
        
        # First registration
        auth_service.register_user(user_data)
        
        # Duplicate registration
        user_data['name'] = 'Second'
        with pytest.raises(ValidationError) as exc:
            auth_service.register_user(user_data)
        assert exc.value.message == 'Email already registered'
    
    def test_register_weak_password(self, auth_service):
        """Test password strength rules"""
        with pytest.raises(ValidationError):
            auth_service.register_user({
                'name': 'Weak',
                'email': 'weak@example.com',
                'password': 'short'
            })
    
    def test_authenticate_user(self, auth_service):
        """Test user authentication"""
        user_data = {
            'name': 'Jane Smith',
            'email': 'auth.test@example.com',
            'password': 'SecurePass123'
        }
        auth_service.register_user(user_data)
        
        result = auth_service.authenticate_user(user_data['email'], user_data['password'])
        assert 'access_token' in result
        assert result['user']['email'] == user_data['email']
        
        payload = verify_token(result['access_token'])
        assert payload['role'] == 'user'
        assert payload['user_id'] == result['user']['id']
    
    def test_invalid_credentials(self, auth_service):
        """Test authentication with invalid credentials"""
        with pytest.raises(AuthenticationError) as exc:
            auth_service.authenticate_user('nonexistent@example.com', 'wrongpass')
        assert exc.value.message == 'Invalid credentials'
    
    def test_admin_token_role(self, auth_service):
        """Admins carry the system_admin role in their token"""
        result = auth_service.register_user({
            'name': 'Admin',
            'email': 'admin@example.com',
            'password': 'SecurePass123'
        })
        auth_service.set_access_level(result['user_id'], AccessLevel.SYSTEM_ADMIN)
        
        login = auth_service.authenticate_user('admin@example.com', 'SecurePass123')
        assert verify_token(login['access_token'])['role'] == 'system_admin'
        assert login['user']['access_level'] == 'system_admin'
    
    def test_token_refresh(self, auth_service):
        """Test token refresh"""
        result = auth_service.register_user({
            'name': 'Refresh',
            'email': 'refresh@example.com',
            'password': 'SecurePass123'
        })
        token = generate_token({
            'user_id': result['user_id'],
            'email': 'refresh@example.com',
            'role': 'user'
        })
        
        refreshed = auth_service.refresh_token(token)
        assert verify_token(refreshed['access_token'])['user_id'] == result['user_id']
    
    def test_refresh_invalid_token(self, auth_service):
        with pytest.raises(AuthenticationError):
            auth_service.refresh_token('not-a-jwt')
