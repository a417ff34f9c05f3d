from datetime import datetime
from typing import Dict, List, Optional
from app.database import get_db
from app.models import JCEPApplication, AgeGroup, User
from app.utils.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from app.utils.rotation import get_age_group_label
from app.utils.validators import validate_age_group
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ''


class ApplicationService:
    """Service for JCEP programme applications"""

    def _require_admin(self, db, user_id: Optional[int], message: str) -> User:
        user = db.get(User, user_id) if user_id else None
        if not user:
            raise AuthenticationError('Not authenticated')
        if not user.is_admin:
            raise AuthorizationError(message)
        return user

    def _serialize(self, application: JCEPApplication) -> Dict:
        choice2 = application.age_group_choice2.value if application.age_group_choice2 else None
        return {
            'id': application.id,
            'submitted_at': _iso(application.submitted_at),
            'submission_year': application.submission_year,
            'user_id': application.user_id,
            'full_name': application.full_name,
            'contact_number': application.contact_number,
            'age_group_choice1': application.age_group_choice1.value,
            'age_group_choice1_label': get_age_group_label(application.age_group_choice1.value),
            'reason_for_choice1': application.reason_for_choice1,
            'age_group_choice2': choice2,
            'age_group_choice2_label': get_age_group_label(choice2) if choice2 else None,
            'reason_for_choice2': application.reason_for_choice2,
            'acknowledged_motto_and_pledge': application.acknowledged_motto_and_pledge,
            'archived_at': _iso(application.archived_at),
            'archived_by': application.archived_by,
            'is_archived': application.is_archived,
        }

    def submit_application(self, data: Dict, user_id: int = None) -> Dict:
        """
        Public submission. `user_id` links the application to the applicant's
        account when they were logged in.
        """
        full_name = _clean(data.get('full_name'))
        contact_number = _clean(data.get('contact_number'))
        reason1 = _clean(data.get('reason_for_choice1'))
        reason2 = _clean(data.get('reason_for_choice2'))
        choice2 = data.get('age_group_choice2') or None

        if not full_name:
            raise ValidationError('Full name is required')
        if not contact_number:
            raise ValidationError('Contact number is required')

        valid, error = validate_age_group(data.get('age_group_choice1'), 'Age group choice 1')
        if not valid:
            raise ValidationError(error)
        if not reason1:
            raise ValidationError('Reason for choice 1 is required')

        if choice2:
            valid, error = validate_age_group(choice2, 'Age group choice 2')
            if not valid:
                raise ValidationError(error)
            if not reason2:
                raise ValidationError('Reason for choice 2 is required when age group choice 2 is selected')

        if data.get('acknowledged_motto_and_pledge') is not True:
            raise ValidationError('You must acknowledge the Royal Rangers Motto, Pledge, and Code')

        now = datetime.utcnow()

        with get_db() as db:
            # An unknown user simply submits anonymously
            if user_id and not db.get(User, user_id):
                user_id = None

            application = JCEPApplication(
                submitted_at=now,
                submission_year=now.year,
                user_id=user_id,
                full_name=full_name,
                contact_number=contact_number,
                age_group_choice1=AgeGroup(data['age_group_choice1']),
                reason_for_choice1=reason1,
                age_group_choice2=AgeGroup(choice2) if choice2 else None,
                reason_for_choice2=reason2 if choice2 else None,
                acknowledged_motto_and_pledge=True
            )
            db.add(application)
            db.flush()

            logger.info(f"Application {application.id} submitted for year {now.year}")

            return {'success': True, 'application_id': application.id}

    def list_applications(self, user_id: int, include_archived: bool = False) -> Dict:
        """
        Applications grouped by submission year (admin only).
        `include_archived=True` lists archived applications only,
        otherwise only active ones.
        """
        with get_db() as db:
            self._require_admin(db, user_id, 'You must be a system admin to view applications')

            query = db.query(JCEPApplication)
            if include_archived:
                query = query.filter(JCEPApplication.archived_at.isnot(None))
            else:
                query = query.filter(JCEPApplication.archived_at.is_(None))

            applications = query.order_by(
                JCEPApplication.submitted_at.desc(), JCEPApplication.id.desc()
            ).all()

            grouped_by_year = {}
            for application in applications:
                grouped_by_year.setdefault(application.submission_year, []).append(
                    self._serialize(application)
                )

            return {
                'grouped_by_year': grouped_by_year,
                'years': sorted(grouped_by_year.keys(), reverse=True),
                'total_count': len(applications),
            }

    def get_application(self, user_id: int, application_id: int) -> Dict:
        with get_db() as db:
            self._require_admin(db, user_id, 'You must be a system admin to view applications')

            application = db.get(JCEPApplication, application_id)
            if not application:
                raise NotFoundError('Application not found')
            return self._serialize(application)

    def get_applications_count_by_year(self, user_id: int) -> Dict:
        """Counts per submission year, archived applications included (admin only)"""
        with get_db() as db:
            self._require_admin(db, user_id, 'You must be a system admin to view application counts')

            count_by_year = {}
            for (year,) in db.query(JCEPApplication.submission_year).all():
                count_by_year[year] = count_by_year.get(year, 0) + 1

            return {
                'count_by_year': count_by_year,
                'years': sorted(count_by_year.keys(), reverse=True),
                'total_count': sum(count_by_year.values()),
            }

    def archive_application(self, user_id: int, application_id: int):
        with get_db() as db:
            admin = self._require_admin(db, user_id, 'Only admins can archive applications')

            application = db.get(JCEPApplication, application_id)
            if not application:
                raise NotFoundError('Application not found')

            application.archived_at = datetime.utcnow()
            application.archived_by = admin.id

            logger.info(f"Application {application_id} archived by user {admin.id}")

    def unarchive_application(self, user_id: int, application_id: int):
        with get_db() as db:
            admin = self._require_admin(db, user_id, 'Only admins can unarchive applications')

            application = db.get(JCEPApplication, application_id)
            if not application:
                raise NotFoundError('Application not found')

            application.archived_at = None
            application.archived_by = None

            logger.info(f"Application {application_id} unarchived by user {admin.id}")

    def get_all_applications(self, user_id: int) -> List[Dict]:
        """Every application, newest first, for export (admin only)"""
        with get_db() as db:
            self._require_admin(db, user_id, 'You must be a system admin to export applications')

            applications = db.query(JCEPApplication).order_by(
                JCEPApplication.submitted_at.desc(), JCEPApplication.id.desc()
            ).all()
            return [self._serialize(application) for application in applications]
