from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, Enum, JSON, Index
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class AgeGroup(enum.Enum):
    RK = "RK"
    DR = "DR"
    AR = "AR"
    ER = "ER"


class ReviewFormStatus(enum.Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class ReviewForm(BaseModel):
    """One rotation evaluation pairing a Buddy with a Junior Commander.

    Each section column holds either None or a dict of
    ``{field: {'question_text': str, 'answer': str}}`` plus
    ``completed_at`` (ISO timestamp) and ``completed_by`` (user id or None).
    """
    __tablename__ = 'review_forms'

    schema_version = Column(Integer, nullable=False, default=1, index=True)

    # Secret access tokens for anonymous access
    buddy_access_token = Column(String(128), nullable=False, unique=True, index=True)
    jc_access_token = Column(String(128), nullable=False, unique=True, index=True)
    token_expires_at = Column(DateTime)  # None means the tokens never expire

    # Response visibility control
    buddy_responses_visible_to_jc = Column(Boolean, nullable=False, default=False)
    jc_responses_visible_to_buddy = Column(Boolean, nullable=False, default=False)
    visibility_changed_at = Column(DateTime)
    visibility_changed_by = Column(Integer, ForeignKey('users.id'))

    # Particulars
    rotation_year = Column(Integer, nullable=False, index=True)
    rotation_quarter = Column(Integer, nullable=False)  # 1-4
    buddy_user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    buddy_name = Column(String(200), nullable=False)
    junior_commander_user_id = Column(Integer, ForeignKey('users.id'), index=True)  # None if JC not registered
    junior_commander_name = Column(String(200), nullable=False)
    age_group = Column(Enum(AgeGroup), nullable=False)
    evaluation_date = Column(DateTime, nullable=False)

    # Filled by the JC reflection section
    next_rotation_preference = Column(Enum(AgeGroup))

    # Sections
    buddy_evaluation = Column(JSON)
    jc_reflection = Column(JSON)
    jc_feedback = Column(JSON)

    # Meta
    status = Column(Enum(ReviewFormStatus), nullable=False, default=ReviewFormStatus.DRAFT, index=True)
    submitted_at = Column(DateTime)
    submitted_by = Column(Integer, ForeignKey('users.id'))
    created_by = Column(Integer, ForeignKey('users.id'), nullable=False)

    # Relationships
    buddy = relationship("User", back_populates="buddy_review_forms", foreign_keys=[buddy_user_id])
    junior_commander = relationship(
        "User", back_populates="jc_review_forms", foreign_keys=[junior_commander_user_id]
    )

    __table_args__ = (
        Index('ix_review_forms_year_quarter', 'rotation_year', 'rotation_quarter'),
        Index('ix_review_forms_year_buddy', 'rotation_year', 'buddy_user_id'),
        Index('ix_review_forms_year_jc', 'rotation_year', 'junior_commander_user_id'),
        Index('ix_review_forms_year_quarter_buddy', 'rotation_year', 'rotation_quarter', 'buddy_user_id'),
        Index('ix_review_forms_year_quarter_jc', 'rotation_year', 'rotation_quarter', 'junior_commander_user_id'),
        Index('ix_review_forms_year_status', 'rotation_year', 'status'),
        Index('ix_review_forms_year_quarter_status', 'rotation_year', 'rotation_quarter', 'status'),
    )

    @property
    def is_submitted(self):
        return self.status == ReviewFormStatus.SUBMITTED
