from sqlalchemy import Column, String, Enum
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class AccessLevel(enum.Enum):
    USER = "user"
    SYSTEM_ADMIN = "system_admin"


class User(BaseModel):
    __tablename__ = 'users'
    
    # Basic Info
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    access_level = Column(Enum(AccessLevel), default=AccessLevel.USER, nullable=False)
    
    # Relationships
    buddy_review_forms = relationship(
        "ReviewForm", back_populates="buddy", lazy='dynamic', foreign_keys='ReviewForm.buddy_user_id'
    )
    jc_review_forms = relationship(
        "ReviewForm", back_populates="junior_commander", lazy='dynamic',
        foreign_keys='ReviewForm.junior_commander_user_id'
    )
    applications = relationship(
        "JCEPApplication", back_populates="user", lazy='dynamic', foreign_keys='JCEPApplication.user_id'
    )

    @property
    def is_admin(self):
        return self.access_level == AccessLevel.SYSTEM_ADMIN
