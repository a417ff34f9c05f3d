import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///jcep.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Application Settings
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5000')

    # Review form Settings
    CURRENT_REVIEW_FORM_SCHEMA_VERSION = 1
    MIN_ROTATION_YEAR = 2020
    MAX_ROTATION_YEAR = 2100
    REVIEW_TOKEN_BYTES = int(os.environ.get('REVIEW_TOKEN_BYTES', '32'))
    REVIEW_TOKEN_MIN_LENGTH = 32
    REVIEW_TOKEN_EXPIRY_DAYS = int(os.environ.get('REVIEW_TOKEN_EXPIRY_DAYS', '0'))  # 0 = never

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get('ACCESS_TOKEN_EXPIRE_MINUTES', str(60 * 24)))

    # Logging
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/jcep.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite:///test_jcep.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
