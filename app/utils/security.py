import re
import secrets
from datetime import datetime, timedelta
from typing import Optional
from passlib.context import CryptContext
from jose import jwt, JWTError
from config.config import Config

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT settings
SECRET_KEY = Config.SECRET_KEY
ALGORITHM = "HS256"

BASE64URL_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against hash"""
    return pwd_context.verify(plain_password, hashed_password)


def generate_token(data: dict, expires_delta: timedelta = None) -> str:
    """Generate JWT token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES)
    
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(token: str) -> Optional[dict]:
    """Verify and decode JWT token"""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def generate_secure_token(length: int = None) -> str:
    """
    Generate a URL-safe secret for review form links.
    `length` is the number of random bytes; 32 bytes gives a 43 character token.
    """
    return secrets.token_urlsafe(length or Config.REVIEW_TOKEN_BYTES)


def is_valid_token_format(token: str) -> bool:
    """Check length and alphabet only, not whether the token exists"""
    if not token or len(token) < Config.REVIEW_TOKEN_MIN_LENGTH:
        return False
    return bool(BASE64URL_PATTERN.match(token))


def is_token_expired(expires_at: Optional[datetime], now: datetime = None) -> bool:
    """A missing expiry never expires"""
    if expires_at is None:
        return False
    return (now or datetime.utcnow()) > expires_at


def generate_token_expiry(days_from_now: int = None) -> Optional[datetime]:
    """Expiry timestamp for review form tokens, None when expiry is disabled"""
    days = Config.REVIEW_TOKEN_EXPIRY_DAYS if days_from_now is None else days_from_now
    if not days or days <= 0:
        return None
    return datetime.utcnow() + timedelta(days=days)


def build_token_url(token: str) -> str:
    """Public link that grants anonymous access to one review form"""
    return f"{Config.APP_URL.rstrip('/')}/review/token/{token}"
