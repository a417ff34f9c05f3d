import os

# Point the app at a throwaway database before anything reads the config
os.environ['DATABASE_URL'] = 'sqlite:///test_jcep.db'
os.environ['LOG_FILE'] = 'logs/test_jcep.log'
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

import pytest
from app.database import drop_db, init_db, DatabaseManager
from app.models import User, AccessLevel


@pytest.fixture
def db():
    """Fresh tables for each test"""
    drop_db()
    init_db()
    yield
    drop_db()


@pytest.fixture
def users(db):
    """An admin, a buddy, a junior commander and an unrelated user"""
    user_db = DatabaseManager(User)
    
    def make(name, email, access_level=AccessLevel.USER):
        return user_db.create(
            name=name,
            email=email,
            password_hash='hashed',
            access_level=access_level
        )
    
    return {
        'admin': make('Admin', 'admin@test.com', AccessLevel.SYSTEM_ADMIN),
        'buddy': make('Grace Buddy', 'buddy@test.com'),
        'jc': make('Daniel JC', 'jc@test.com'),
        'other': make('Other User', 'other@test.com'),
    }
