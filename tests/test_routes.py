import pytest
from app.main import create_app
from app.utils.security import generate_token
from tests.factories import form_data, buddy_answers, reflection_answers, feedback_answers


@pytest.fixture
def client(users):
    app = create_app('testing')
    return app.test_client()


def auth_headers(user):
    token = generate_token({
        'user_id': user.id,
        'email': user.email,
        'role': user.access_level.value
    })
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def created(client, users):
    response = client.post('/api/reviews', json=form_data(users), headers=auth_headers(users['admin']))
    assert response.status_code == 201
    return response.get_json()


class TestReviewRoutes:
    """Review form endpoints"""
    
    def test_requires_auth(self, client, created):
        response = client.get(f"/api/reviews/{created['form_id']}")
        assert response.status_code == 401
    
    def test_create_missing_field(self, client, users):
        data = form_data(users)
        del data['age_group']
        response = client.post('/api/reviews', json=data, headers=auth_headers(users['admin']))
        assert response.status_code == 400
        assert response.get_json()['error'] == 'age_group is required'
    
    def test_questions_are_public(self, client):
        response = client.get('/api/reviews/questions')
        assert response.status_code == 200
        data = response.get_json()
        assert set(data['questions']) == {'buddy_evaluation', 'jc_reflection', 'jc_feedback'}
        assert data['age_groups']['ER'] == 'Expedition Rangers'
    
    def test_token_flow(self, client, created):
        form_id = created['form_id']
        
        response = client.put(
            f"/api/reviews/token/{created['buddy_access_token']}/buddy-evaluation",
            json=dict(buddy_answers(), form_id=form_id)
        )
        assert response.status_code == 200
        
        response = client.put(
            f"/api/reviews/token/{created['jc_access_token']}/jc-reflection",
            json=dict(reflection_answers(), form_id=form_id, next_rotation_preference='AR')
        )
        assert response.status_code == 200
        
        response = client.get(f"/api/reviews/token/{created['jc_access_token']}")
        assert response.status_code == 200
        body = response.get_json()
        assert body['access_level'] == 'jc'
        assert body['form']['buddy_evaluation'] is None
        assert body['form']['jc_reflection']['learnings_from_jcep']['answer'] == 'x'
    
    def test_token_write_needs_form_id(self, client, created):
        response = client.put(
            f"/api/reviews/token/{created['buddy_access_token']}/buddy-evaluation",
            json=buddy_answers()
        )
        assert response.status_code == 400
        assert response.get_json()['error'] == 'form_id is required'
    
    def test_wrong_token_role_is_forbidden(self, client, created):
        response = client.put(
            f"/api/reviews/token/{created['jc_access_token']}/buddy-evaluation",
            json=dict(buddy_answers(), form_id=created['form_id'])
        )
        assert response.status_code == 403
    
    def test_unknown_token(self, client, created):
        response = client.get('/api/reviews/token/' + 'A' * 43)
        assert response.status_code == 404
    
    def test_submit_and_lock(self, client, users, created):
        form_id = created['form_id']
        buddy, jc = auth_headers(users['buddy']), auth_headers(users['jc'])
        
        response = client.post(f'/api/reviews/{form_id}/submit', headers=buddy)
        assert response.status_code == 400
        
        client.put(f'/api/reviews/{form_id}/buddy-evaluation', json=buddy_answers(), headers=buddy)
        client.put(
            f'/api/reviews/{form_id}/jc-reflection',
            json=dict(reflection_answers(), next_rotation_preference='ER'),
            headers=jc
        )
        client.put(f'/api/reviews/{form_id}/jc-feedback', json=feedback_answers(), headers=jc)
        
        response = client.post(f'/api/reviews/{form_id}/submit', headers=buddy)
        assert response.status_code == 200
        
        response = client.put(f'/api/reviews/{form_id}/jc-feedback', json=feedback_answers(), headers=jc)
        assert response.status_code == 409
    
    def test_visibility_is_admin_only(self, client, users, created):
        url = f"/api/reviews/{created['form_id']}/visibility"
        response = client.put(url, json={'buddy_responses_visible_to_jc': True},
                              headers=auth_headers(users['buddy']))
        assert response.status_code == 403
        
        response = client.put(url, json={'buddy_responses_visible_to_jc': True},
                              headers=auth_headers(users['admin']))
        assert response.status_code == 200
        assert response.get_json()['buddy_responses_visible_to_jc'] is True
    
    def test_all_forms_listing(self, client, users, created):
        response = client.get('/api/reviews/all/2025', headers=auth_headers(users['admin']))
        assert response.status_code == 200
        assert response.get_json()['total_count'] == 1


class TestApplicationRoutes:
    
    def test_anonymous_submit_and_archive(self, client, users):
        response = client.post('/api/applications', json={
            'full_name': 'Joel Chua',
            'contact_number': '91234567',
            'age_group_choice1': 'DR',
            'reason_for_choice1': 'I enjoy working with kids',
            'acknowledged_motto_and_pledge': True
        })
        assert response.status_code == 201
        application_id = response.get_json()['application_id']
        
        admin = auth_headers(users['admin'])
        response = client.post(f'/api/applications/{application_id}/archive', headers=admin)
        assert response.status_code == 200
        
        active = client.get('/api/applications', headers=admin).get_json()
        archived = client.get('/api/applications?include_archived=true', headers=admin).get_json()
        assert active['total_count'] == 0
        assert archived['total_count'] == 1
    
    def test_list_requires_admin(self, client, users):
        response = client.get('/api/applications', headers=auth_headers(users['buddy']))
        assert response.status_code == 403


class TestAdminRoutes:
    
    def test_export_reviews_csv(self, client, users, created):
        response = client.get('/api/admin/export/reviews?year=2025', headers=auth_headers(users['admin']))
        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        
        lines = response.get_data(as_text=True).strip().splitlines()
        assert lines[0].startswith('Rotation Year,Rotation Quarter,Junior Commander,Buddy')
        assert len(lines) == 2
        assert 'Daniel JC' in lines[1]
    
    def test_export_empty_year(self, client, users):
        response = client.get('/api/admin/export/reviews?year=2030', headers=auth_headers(users['admin']))
        assert response.status_code == 404
    
    def test_admin_routes_reject_users(self, client, users):
        response = client.get('/api/admin/dashboard', headers=auth_headers(users['buddy']))
        assert response.status_code == 403
    
    def test_dashboard(self, client, users, created):
        response = client.get('/api/admin/dashboard?year=2025', headers=auth_headers(users['admin']))
        assert response.status_code == 200
        data = response.get_json()
        assert data['review_forms']['total'] == 1
        assert data['review_forms']['by_status']['draft'] == 1


class TestAuthRoutes:
    
    def test_register_login_me(self, client):
        response = client.post('/api/auth/register', json={
            'name': 'New User',
            'email': 'new@test.com',
            'password': 'SecurePass123'
        })
        assert response.status_code == 201
        
        response = client.post('/api/auth/login', json={'email': 'new@test.com', 'password': 'SecurePass123'})
        assert response.status_code == 200
        token = response.get_json()['access_token']
        
        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert response.get_json()['email'] == 'new@test.com'
