import pytest
from datetime import datetime, timedelta
from app.database import DatabaseManager
from app.models import ReviewForm
from app.services.review_form_service import ReviewFormService
from app.utils.errors import AuthorizationError, NotFoundError, TokenExpiredError, ValidationError
from app.utils.security import (
    generate_secure_token, is_valid_token_format, is_token_expired, generate_token_expiry
)
from config.config import Config
from tests.factories import form_data, buddy_answers, reflection_answers, feedback_answers


@pytest.fixture
def service(users):
    return ReviewFormService()


@pytest.fixture
def created(service, users):
    return service.create_review_form(users['admin'].id, form_data(users))


class TestTokenHelpers:
    """Review link secret helpers"""
    
    def test_generated_tokens_are_valid_and_unique(self):
        tokens = {generate_secure_token() for _ in range(20)}
        assert len(tokens) == 20
        assert all(is_valid_token_format(token) for token in tokens)
    
    def test_invalid_formats(self):
        assert not is_valid_token_format('')
        assert not is_valid_token_format(None)
        assert not is_valid_token_format('short')
        assert not is_valid_token_format('a' * 40 + '/+=')
    
    def test_expiry(self):
        now = datetime(2025, 6, 1)
        assert not is_token_expired(None, now)
        assert not is_token_expired(now + timedelta(days=1), now)
        assert is_token_expired(now - timedelta(seconds=1), now)
    
    def test_expiry_disabled(self):
        assert generate_token_expiry(0) is None
        assert generate_token_expiry(-3) is None
        assert generate_token_expiry(30) > datetime.utcnow() + timedelta(days=29)


class TestTokenAccess:
    """Anonymous access through review links"""
    
    def test_lookup_resolves_role(self, service, created):
        buddy_view = service.get_review_form_by_token(created['buddy_access_token'])
        assert buddy_view['access_level'] == 'buddy'
        assert buddy_view['jc_access_token'] is None
        assert buddy_view['permissions']['can_submit'] is False
        
        jc_view = service.get_review_form_by_token(created['jc_access_token'])
        assert jc_view['access_level'] == 'jc'
        assert jc_view['buddy_access_token'] is None
    
    def test_unknown_token_is_not_found(self, service, created):
        with pytest.raises(NotFoundError):
            service.get_review_form_by_token(generate_secure_token())
        with pytest.raises(NotFoundError):
            service.get_review_form_by_token('bad')
    
    def test_expired_token_is_distinct_from_not_found(self, service, created):
        DatabaseManager(ReviewForm).update(
            created['form_id'], token_expires_at=datetime.utcnow() - timedelta(days=1)
        )
        with pytest.raises(TokenExpiredError):
            service.get_review_form_by_token(created['jc_access_token'])
        with pytest.raises(TokenExpiredError):
            service.update_jc_feedback_by_token(
                created['form_id'], created['jc_access_token'], feedback_answers()
            )
    
    def test_configured_expiry(self, service, users, monkeypatch):
        monkeypatch.setattr(Config, 'REVIEW_TOKEN_EXPIRY_DAYS', 14)
        result = service.create_review_form(users['admin'].id, form_data(users))
        
        form = service.get_review_form_by_token(result['buddy_access_token'])
        assert form['token_expires_at'] is not None
    
    def test_token_writes(self, service, created):
        form_id = created['form_id']
        buddy_token = created['buddy_access_token']
        jc_token = created['jc_access_token']
        
        service.update_buddy_evaluation_by_token(form_id, buddy_token, buddy_answers())
        # The JC link does not reveal the buddy's answers until released
        assert service.get_review_form_by_token(jc_token)['buddy_evaluation'] is None
        assert service.get_review_form_by_token(buddy_token)['buddy_evaluation']['strengths']['answer'] == 'x'
        
        service.update_jc_reflection_by_token(form_id, jc_token, reflection_answers(), 'AR')
        service.update_jc_feedback_by_token(form_id, jc_token, feedback_answers())
        
        form = service.get_review_form_by_token(jc_token)
        assert form['status'] == 'in_progress'
        assert form['jc_feedback']['completed_by'] is None
        assert form['buddy_evaluation'] is None
        assert form['completion']['completed_count'] == 2
    
    def test_wrong_role_token_is_rejected(self, service, created):
        with pytest.raises(AuthorizationError):
            service.update_buddy_evaluation_by_token(
                created['form_id'], created['jc_access_token'], buddy_answers()
            )
        with pytest.raises(AuthorizationError):
            service.update_jc_feedback_by_token(
                created['form_id'], created['buddy_access_token'], feedback_answers()
            )
    
    def test_non_ascii_token_on_write_is_not_found(self, service, created):
        with pytest.raises(NotFoundError):
            service.update_buddy_evaluation_by_token(created['form_id'], '\u00e9' * 43, buddy_answers())
        with pytest.raises(NotFoundError):
            service.update_particulars_by_token(created['form_id'], '\u00e9' * 43, {'age_group': 'AR'})
    
    def test_token_for_another_form(self, service, users, created):
        other = service.create_review_form(users['admin'].id, form_data(users))
        with pytest.raises(NotFoundError):
            service.update_buddy_evaluation_by_token(
                created['form_id'], other['buddy_access_token'], buddy_answers()
            )
    
    def test_particulars_by_token(self, service, created):
        service.update_particulars_by_token(
            created['form_id'], created['jc_access_token'], {'age_group': 'AR'}
        )
        form = service.get_review_form_by_token(created['buddy_access_token'])
        assert form['age_group'] == 'AR'
        
        with pytest.raises(ValidationError):
            service.update_particulars_by_token(
                created['form_id'], created['jc_access_token'], {'age_group': 'XX'}
            )
    
    def test_regenerate_invalidates_old_links(self, service, users, created):
        with pytest.raises(AuthorizationError):
            service.regenerate_access_tokens(users['buddy'].id, created['form_id'])
        
        fresh = service.regenerate_access_tokens(users['admin'].id, created['form_id'])
        assert fresh['buddy_access_token'] != created['buddy_access_token']
        assert fresh['jc_access_token'] != created['jc_access_token']
        
        with pytest.raises(NotFoundError):
            service.get_review_form_by_token(created['buddy_access_token'])
        assert service.get_review_form_by_token(fresh['jc_access_token'])['access_level'] == 'jc'
