from .user import User, AccessLevel
from .review_form import ReviewForm, ReviewFormStatus, AgeGroup
from .application import JCEPApplication

__all__ = [
    'User', 'AccessLevel',
    'ReviewForm', 'ReviewFormStatus', 'AgeGroup',
    'JCEPApplication'
]
