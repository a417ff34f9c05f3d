from datetime import datetime
from types import SimpleNamespace
from typing import Dict, List, Optional
from sqlalchemy import or_
from app.database import get_db
from app.models import ReviewForm, ReviewFormStatus, AgeGroup, User
from app.services.review_access import (
    Role, SessionAccess, TokenAccess, SECTION_OWNERS,
    resolve_role, resolve_permissions, get_section_lock_message
)
from app.utils.errors import (
    AuthenticationError, AuthorizationError, NotFoundError,
    TokenExpiredError, ValidationError, StateConflictError
)
from app.utils.review_sections import (
    BUDDY_EVALUATION, JC_REFLECTION, JC_FEEDBACK, SECTION_NAMES, SECTION_FIELDS,
    SECTION_TITLES, QUESTIONS, get_section_completion_summary, get_missing_sections
)
from app.utils.rotation import format_rotation_label, get_age_group_label
from app.utils.security import (
    generate_secure_token, generate_token_expiry, is_token_expired,
    is_valid_token_format, build_token_url
)
from app.utils.validators import (
    validate_rotation_year, validate_quarter, validate_age_group,
    validate_required_text, parse_datetime
)
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)

FORM_NOT_FOUND = 'Review form not found'

PARTICULAR_FIELDS = (
    'rotation_year', 'rotation_quarter', 'buddy_name',
    'junior_commander_name', 'age_group', 'evaluation_date'
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _newest_first(forms: List[ReviewForm]) -> List[ReviewForm]:
    return sorted(forms, key=lambda f: (f.created_at, f.id), reverse=True)


class ReviewFormService:
    """Service for JCEP rotation review forms"""

    # ------------------------------------------------------------------
    # Caller resolution
    # ------------------------------------------------------------------

    def _session_access(self, db, user_id: Optional[int]) -> SessionAccess:
        """Load the logged-in user; a stale or missing id is unauthenticated"""
        user = db.get(User, user_id) if user_id else None
        if not user:
            raise AuthenticationError('Not authenticated')
        return SessionAccess(user_id=user.id, is_admin=user.is_admin)

    def _get_form(self, db, form_id: int) -> ReviewForm:
        form = db.get(ReviewForm, form_id)
        if not form:
            raise NotFoundError(FORM_NOT_FOUND)
        return form

    def _token_role(self, form: ReviewForm, token: str) -> Role:
        """
        Resolve a link secret against one form. Wrong tokens look exactly
        like missing forms; an expired token is reported as such.
        """
        if not is_valid_token_format(token):
            raise NotFoundError(FORM_NOT_FOUND)
        role = resolve_role(TokenAccess(token), form)
        if role == Role.NONE:
            raise NotFoundError(FORM_NOT_FOUND)
        if is_token_expired(form.token_expires_at):
            raise TokenExpiredError('This review link has expired')
        return role

    def _find_form_by_token(self, db, token: str) -> ReviewForm:
        if not is_valid_token_format(token):
            raise NotFoundError(FORM_NOT_FOUND)
        form = db.query(ReviewForm).filter_by(buddy_access_token=token).first()
        if not form:
            form = db.query(ReviewForm).filter_by(jc_access_token=token).first()
        if not form:
            raise NotFoundError(FORM_NOT_FOUND)
        return form

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def _project(self, form: ReviewForm, caller, role: Role = None) -> Dict:
        """
        Build the caller-specific view of a form. Hidden sections are
        nulled here on every read and never in the stored record.
        """
        permissions = resolve_permissions(caller, form, role)
        role = permissions.role
        show_jc = permissions.can_view(JC_REFLECTION)

        # Progress only reflects what this caller may see
        visible = SimpleNamespace(
            next_rotation_preference=form.next_rotation_preference if show_jc else None,
            **{section: getattr(form, section) if permissions.can_view(section) else None
               for section in SECTION_NAMES}
        )

        data = {
            'id': form.id,
            'schema_version': form.schema_version,
            'rotation_year': form.rotation_year,
            'rotation_quarter': form.rotation_quarter,
            'rotation_label': format_rotation_label(form.rotation_year, form.rotation_quarter),
            'buddy_user_id': form.buddy_user_id,
            'buddy_name': form.buddy_name,
            'junior_commander_user_id': form.junior_commander_user_id,
            'junior_commander_name': form.junior_commander_name,
            'age_group': form.age_group.value,
            'age_group_label': get_age_group_label(form.age_group.value),
            'evaluation_date': _iso(form.evaluation_date),
            'next_rotation_preference': (
                visible.next_rotation_preference.value if visible.next_rotation_preference else None
            ),
            'buddy_evaluation': visible.buddy_evaluation,
            'jc_reflection': visible.jc_reflection,
            'jc_feedback': visible.jc_feedback,
            'status': form.status.value,
            'submitted_at': _iso(form.submitted_at),
            'submitted_by': form.submitted_by,
            'created_by': form.created_by,
            'created_at': _iso(form.created_at),
            'updated_at': _iso(form.updated_at),
            'buddy_responses_visible_to_jc': form.buddy_responses_visible_to_jc,
            'jc_responses_visible_to_buddy': form.jc_responses_visible_to_buddy,
            'visibility_changed_at': _iso(form.visibility_changed_at),
            'visibility_changed_by': form.visibility_changed_by,
            'token_expires_at': _iso(form.token_expires_at),
            # Each party only ever sees its own link secret
            'buddy_access_token': form.buddy_access_token if role in (Role.ADMIN, Role.BUDDY) else None,
            'jc_access_token': form.jc_access_token if role in (Role.ADMIN, Role.JC) else None,
            'access_level': role.value,
            'permissions': permissions.to_dict(),
            'completion': get_section_completion_summary(visible),
            'section_locks': {
                section: get_section_lock_message(section, role)
                for section in SECTION_NAMES if not permissions.can_edit(section)
            },
        }
        return data

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_review_form(self, user_id: int, form_id: int) -> Dict:
        """Get a single form for a logged-in buddy, JC or admin"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            role = resolve_role(caller, form)
            if role == Role.NONE:
                raise AuthorizationError('Not authorized to view this form')

            return self._project(form, caller, role)

    def get_review_form_by_token(self, token: str) -> Dict:
        """Get a form through a secret link, as the buddy or the JC"""
        with get_db() as db:
            form = self._find_form_by_token(db, token)
            role = self._token_role(form, token)
            return self._project(form, TokenAccess(token), role)

    def get_review_forms_by_year(self, user_id: int, year: int) -> List[Dict]:
        """Forms for a year where the caller is the buddy or the JC"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            forms = db.query(ReviewForm).filter(
                ReviewForm.rotation_year == year,
                or_(
                    ReviewForm.buddy_user_id == caller.user_id,
                    ReviewForm.junior_commander_user_id == caller.user_id
                )
            ).all()

            return [self._project(form, caller) for form in _newest_first(forms)]

    def get_review_forms_by_buddy(self, user_id: int, buddy_user_id: int = None,
                                  year: int = None, quarter: int = None) -> List[Dict]:
        """A buddy's forms, newest first; other buddies' lists are admin-only"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            target_id = buddy_user_id or caller.user_id

            if target_id != caller.user_id and not caller.is_admin:
                raise AuthorizationError("Not authorized to view other users' forms")

            query = db.query(ReviewForm).filter(ReviewForm.buddy_user_id == target_id)
            if year is not None:
                query = query.filter(ReviewForm.rotation_year == year)
            if quarter is not None:
                query = query.filter(ReviewForm.rotation_quarter == quarter)

            return [self._project(form, caller) for form in _newest_first(query.all())]

    def get_review_forms_by_user(self, user_id: int, target_user_id: int = None) -> List[Dict]:
        """Forms where a user is the buddy or the JC"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            target_id = target_user_id or caller.user_id

            if target_id != caller.user_id and not caller.is_admin:
                raise AuthorizationError("Not authorized to view other users' forms")

            forms = db.query(ReviewForm).filter(
                or_(
                    ReviewForm.buddy_user_id == target_id,
                    ReviewForm.junior_commander_user_id == target_id
                )
            ).all()

            return [self._project(form, caller) for form in _newest_first(forms)]

    def get_all_review_forms_by_year(self, user_id: int, year: int, status: str = None,
                                     age_group: str = None, quarter: int = None) -> List[Dict]:
        """All forms for a year (admin only), optionally filtered"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            if not caller.is_admin:
                raise AuthorizationError('Not authorized - admin access required')

            query = db.query(ReviewForm).filter(ReviewForm.rotation_year == year)

            if status:
                try:
                    query = query.filter(ReviewForm.status == ReviewFormStatus(status))
                except ValueError:
                    raise ValidationError(f'Invalid status: {status}')

            if age_group:
                valid, error = validate_age_group(age_group)
                if not valid:
                    raise ValidationError(error)
                query = query.filter(ReviewForm.age_group == AgeGroup(age_group))

            if quarter is not None:
                valid, error = validate_quarter(quarter)
                if not valid:
                    raise ValidationError(error)
                query = query.filter(ReviewForm.rotation_quarter == quarter)

            return [self._project(form, caller) for form in _newest_first(query.all())]

    # ------------------------------------------------------------------
    # Creation and particulars
    # ------------------------------------------------------------------

    def _generate_token_pair(self, db) -> Dict:
        """
        Two fresh link secrets. A clash with any stored token is reported
        to the caller rather than retried here.
        """
        buddy_token = generate_secure_token()
        jc_token = generate_secure_token()
        candidates = [buddy_token, jc_token]

        clash = buddy_token == jc_token or db.query(ReviewForm).filter(
            or_(
                ReviewForm.buddy_access_token.in_(candidates),
                ReviewForm.jc_access_token.in_(candidates)
            )
        ).first() is not None

        if clash:
            raise ValidationError('Token collision detected, please try again')

        return {'buddy_access_token': buddy_token, 'jc_access_token': jc_token}

    def _validate_particulars(self, data: Dict, partial: bool = False) -> Dict:
        """Validate and normalise particulars; `partial` skips absent fields"""
        cleaned = {}

        def present(field):
            return not partial or data.get(field) is not None

        if present('rotation_year'):
            valid, error = validate_rotation_year(data.get('rotation_year'))
            if not valid:
                raise ValidationError(error)
            cleaned['rotation_year'] = data['rotation_year']

        if present('rotation_quarter'):
            valid, error = validate_quarter(data.get('rotation_quarter'))
            if not valid:
                raise ValidationError(error)
            cleaned['rotation_quarter'] = data['rotation_quarter']

        for field, label in (('buddy_name', 'Buddy name'),
                             ('junior_commander_name', 'Junior Commander name')):
            if present(field):
                valid, error = validate_required_text(data.get(field), label)
                if not valid:
                    raise ValidationError(error)
                cleaned[field] = data[field].strip()

        if present('age_group'):
            valid, error = validate_age_group(data.get('age_group'))
            if not valid:
                raise ValidationError(error)
            cleaned['age_group'] = AgeGroup(data['age_group'])

        if present('evaluation_date'):
            try:
                evaluation_date = parse_datetime(data.get('evaluation_date'))
            except ValueError:
                raise ValidationError('Invalid evaluation date')
            if evaluation_date is None:
                raise ValidationError('Evaluation date is required')
            cleaned['evaluation_date'] = evaluation_date

        return cleaned

    def create_review_form(self, user_id: int, data: Dict) -> Dict:
        """Create a draft form and issue both access links"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            particulars = self._validate_particulars(data)

            buddy_user_id = data.get('buddy_user_id')
            if not buddy_user_id or not db.get(User, buddy_user_id):
                raise NotFoundError('Buddy user not found')

            jc_user_id = data.get('junior_commander_user_id')
            if jc_user_id and not db.get(User, jc_user_id):
                raise NotFoundError('Junior Commander user not found')

            tokens = self._generate_token_pair(db)

            form = ReviewForm(
                schema_version=Config.CURRENT_REVIEW_FORM_SCHEMA_VERSION,
                token_expires_at=generate_token_expiry(),
                buddy_responses_visible_to_jc=False,
                jc_responses_visible_to_buddy=False,
                buddy_user_id=buddy_user_id,
                junior_commander_user_id=jc_user_id or None,
                next_rotation_preference=None,
                buddy_evaluation=None,
                jc_reflection=None,
                jc_feedback=None,
                status=ReviewFormStatus.DRAFT,
                created_by=caller.user_id,
                **tokens,
                **particulars
            )
            db.add(form)
            db.flush()

            logger.info(f"Review form {form.id} created by user {caller.user_id}")

            return {
                'form_id': form.id,
                'buddy_access_token': tokens['buddy_access_token'],
                'jc_access_token': tokens['jc_access_token'],
                'buddy_link': build_token_url(tokens['buddy_access_token']),
                'jc_link': build_token_url(tokens['jc_access_token']),
            }

    def _apply_particulars(self, form: ReviewForm, data: Dict):
        if form.is_submitted:
            raise StateConflictError('Cannot edit submitted form')

        updates = self._validate_particulars(data, partial=True)
        if not updates:
            raise ValidationError('No particulars to update')

        for key, value in updates.items():
            setattr(form, key, value)

    def update_particulars(self, user_id: int, form_id: int, data: Dict):
        """Update particulars (creator or admin)"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            if form.is_submitted:
                raise StateConflictError('Cannot edit submitted form')
            if not resolve_permissions(caller, form).can_edit_particulars:
                raise AuthorizationError('Not authorized to update particulars')

            self._apply_particulars(form, data)
            logger.info(f"Particulars of review form {form_id} updated by user {caller.user_id}")

    def update_particulars_by_token(self, form_id: int, token: str, data: Dict):
        """Update particulars through either party's link"""
        with get_db() as db:
            form = self._get_form(db, form_id)
            role = self._token_role(form, token)

            self._apply_particulars(form, data)
            logger.info(f"Particulars of review form {form_id} updated via {role.value} link")

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _build_section(self, section: str, responses: Dict, completed_by: Optional[int]) -> Dict:
        """
        Assemble a whole section from question/answer pairs. Every field must
        be supplied; the question text defaults to the current wording.
        """
        content = {}
        for field in SECTION_FIELDS[section]:
            response = responses.get(field)
            if not isinstance(response, dict) or not isinstance(response.get('answer'), str):
                raise ValidationError(f'{field} answer is required')

            question_text = response.get('question_text')
            if not isinstance(question_text, str) or not question_text.strip():
                question_text = QUESTIONS[section][field]

            content[field] = {'question_text': question_text, 'answer': response['answer']}

        content['completed_at'] = datetime.utcnow().isoformat()
        content['completed_by'] = completed_by
        return content

    def _write_section(self, form: ReviewForm, section: str, responses: Dict,
                       completed_by: Optional[int], next_rotation_preference: str = None):
        """Replace a section wholesale and move the form to in progress"""
        if section == JC_REFLECTION:
            valid, error = validate_age_group(next_rotation_preference, 'Next rotation preference')
            if not valid:
                raise ValidationError(error)

        content = self._build_section(section, responses, completed_by)

        if section == JC_REFLECTION:
            form.next_rotation_preference = AgeGroup(next_rotation_preference)
        setattr(form, section, content)
        form.status = ReviewFormStatus.IN_PROGRESS

    def _update_section_session(self, user_id: int, form_id: int, section: str,
                                responses: Dict, next_rotation_preference: str = None):
        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            if form.is_submitted:
                raise StateConflictError('Cannot edit submitted form')
            if not resolve_permissions(caller, form).can_edit(section):
                raise AuthorizationError(f'Not authorized to update {SECTION_TITLES[section].lower()}')

            self._write_section(form, section, responses, caller.user_id, next_rotation_preference)
            logger.info(f"Review form {form_id} {section} saved by user {caller.user_id}")

    def _update_section_token(self, form_id: int, token: str, section: str,
                              responses: Dict, next_rotation_preference: str = None):
        with get_db() as db:
            form = self._get_form(db, form_id)
            role = self._token_role(form, token)

            if form.is_submitted:
                raise StateConflictError('Cannot edit submitted form')
            if role != SECTION_OWNERS[section]:
                raise AuthorizationError(f'Not authorized to update {SECTION_TITLES[section].lower()}')

            # Link writers are not tracked by identity
            self._write_section(form, section, responses, None, next_rotation_preference)
            logger.info(f"Review form {form_id} {section} saved via {role.value} link")

    def update_buddy_evaluation(self, user_id: int, form_id: int, responses: Dict):
        self._update_section_session(user_id, form_id, BUDDY_EVALUATION, responses)

    def update_buddy_evaluation_by_token(self, form_id: int, token: str, responses: Dict):
        self._update_section_token(form_id, token, BUDDY_EVALUATION, responses)

    def update_jc_reflection(self, user_id: int, form_id: int, responses: Dict,
                             next_rotation_preference: str):
        self._update_section_session(user_id, form_id, JC_REFLECTION, responses, next_rotation_preference)

    def update_jc_reflection_by_token(self, form_id: int, token: str, responses: Dict,
                                      next_rotation_preference: str):
        self._update_section_token(form_id, token, JC_REFLECTION, responses, next_rotation_preference)

    def update_jc_feedback(self, user_id: int, form_id: int, responses: Dict):
        self._update_section_session(user_id, form_id, JC_FEEDBACK, responses)

    def update_jc_feedback_by_token(self, form_id: int, token: str, responses: Dict):
        self._update_section_token(form_id, token, JC_FEEDBACK, responses)

    # ------------------------------------------------------------------
    # Lifecycle and administration
    # ------------------------------------------------------------------

    def submit_review_form(self, user_id: int, form_id: int):
        """
        Lock the form. Every section must be present; whitespace-only
        answers still count as present here.
        """
        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            if form.is_submitted:
                raise StateConflictError('Form already submitted')
            if resolve_role(caller, form) == Role.NONE:
                raise AuthorizationError('Not authorized to submit this form')

            missing = get_missing_sections(form)
            if missing:
                raise ValidationError(f'{SECTION_TITLES[missing[0]]} section is incomplete')

            form.status = ReviewFormStatus.SUBMITTED
            form.submitted_at = datetime.utcnow()
            form.submitted_by = caller.user_id

            logger.info(f"Review form {form_id} submitted by user {caller.user_id}")

    def delete_review_form(self, user_id: int, form_id: int):
        """Delete a form (creator or admin)"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            if not caller.is_admin and form.created_by != caller.user_id:
                raise AuthorizationError('Not authorized to delete this form')

            db.delete(form)
            logger.info(f"Review form {form_id} deleted by user {caller.user_id}")

    def regenerate_access_tokens(self, user_id: int, form_id: int) -> Dict:
        """Replace both link secrets at once; old links stop working immediately"""
        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            if not caller.is_admin:
                raise AuthorizationError('Only admins can regenerate access tokens')

            tokens = self._generate_token_pair(db)
            form.buddy_access_token = tokens['buddy_access_token']
            form.jc_access_token = tokens['jc_access_token']
            form.token_expires_at = generate_token_expiry()

            logger.info(f"Access tokens regenerated for review form {form_id} by user {caller.user_id}")

            return {
                'buddy_access_token': tokens['buddy_access_token'],
                'jc_access_token': tokens['jc_access_token'],
                'buddy_link': build_token_url(tokens['buddy_access_token']),
                'jc_link': build_token_url(tokens['jc_access_token']),
                'token_expires_at': _iso(form.token_expires_at),
            }

    def toggle_response_visibility(self, user_id: int, form_id: int,
                                   buddy_responses_visible_to_jc: bool = None,
                                   jc_responses_visible_to_buddy: bool = None) -> Dict:
        """Release or hide each party's answers to the other (admin only)"""
        if buddy_responses_visible_to_jc is None and jc_responses_visible_to_buddy is None:
            raise StateConflictError('At least one visibility setting must be provided')
        for flag in (buddy_responses_visible_to_jc, jc_responses_visible_to_buddy):
            if flag is not None and not isinstance(flag, bool):
                raise ValidationError('Visibility settings must be true or false')

        with get_db() as db:
            caller = self._session_access(db, user_id)
            form = self._get_form(db, form_id)

            if not caller.is_admin:
                raise AuthorizationError('Only admins can change response visibility')

            if buddy_responses_visible_to_jc is not None:
                form.buddy_responses_visible_to_jc = buddy_responses_visible_to_jc
            if jc_responses_visible_to_buddy is not None:
                form.jc_responses_visible_to_buddy = jc_responses_visible_to_buddy
            form.visibility_changed_at = datetime.utcnow()
            form.visibility_changed_by = caller.user_id

            logger.info(f"Visibility of review form {form_id} changed by user {caller.user_id}")

            return {
                'buddy_responses_visible_to_jc': form.buddy_responses_visible_to_jc,
                'jc_responses_visible_to_buddy': form.jc_responses_visible_to_buddy,
                'visibility_changed_at': _iso(form.visibility_changed_at),
            }
