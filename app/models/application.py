from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, Enum, Text
from sqlalchemy.orm import relationship
from .base import BaseModel
from .review_form import AgeGroup


class JCEPApplication(BaseModel):
    __tablename__ = 'jcep_applications'
    
    submitted_at = Column(DateTime, nullable=False, index=True)
    submission_year = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'))  # Set when the applicant was logged in
    
    # Applicant
    full_name = Column(String(200), nullable=False)
    contact_number = Column(String(50), nullable=False)
    
    # Age group choices
    age_group_choice1 = Column(Enum(AgeGroup), nullable=False)
    reason_for_choice1 = Column(Text, nullable=False)
    age_group_choice2 = Column(Enum(AgeGroup))
    reason_for_choice2 = Column(Text)
    
    acknowledged_motto_and_pledge = Column(Boolean, nullable=False, default=False)
    
    # Archive state
    archived_at = Column(DateTime, index=True)
    archived_by = Column(Integer, ForeignKey('users.id'))
    
    # Relationships
    user = relationship("User", back_populates="applications", foreign_keys=[user_id])

    @property
    def is_archived(self):
        return self.archived_at is not None
