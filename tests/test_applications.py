import pytest
from datetime import datetime
from app.database import DatabaseManager
from app.models import JCEPApplication, AgeGroup
from app.services.application_service import ApplicationService
from app.utils.errors import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def service(users):
    return ApplicationService()


def application_data(**overrides):
    data = {
        'full_name': 'Joel Chua',
        'contact_number': '91234567',
        'age_group_choice1': 'DR',
        'reason_for_choice1': 'I enjoy working with kids',
        'acknowledged_motto_and_pledge': True,
    }
    data.update(overrides)
    return data


class TestSubmitApplication:
    """Public application submission"""
    
    def test_submit(self, service, users):
        result = service.submit_application(application_data())
        assert result['success'] is True
        
        application = service.get_application(users['admin'].id, result['application_id'])
        assert application['submission_year'] == datetime.utcnow().year
        assert application['age_group_choice1_label'] == 'Discovery Rangers'
        assert application['user_id'] is None
        assert application['archived_at'] is None
    
    def test_submit_links_logged_in_user(self, service, users):
        result = service.submit_application(application_data(), user_id=users['jc'].id)
        application = service.get_application(users['admin'].id, result['application_id'])
        assert application['user_id'] == users['jc'].id
    
    def test_acknowledgement_required(self, service):
        with pytest.raises(ValidationError) as exc:
            service.submit_application(application_data(acknowledged_motto_and_pledge=False))
        assert 'Motto' in exc.value.message
    
    def test_second_choice_needs_reason(self, service):
        with pytest.raises(ValidationError):
            service.submit_application(application_data(age_group_choice2='AR'))
        
        result = service.submit_application(
            application_data(age_group_choice2='AR', reason_for_choice2='Outdoor skills')
        )
        assert result['success'] is True
    
    def test_blank_name_rejected(self, service):
        with pytest.raises(ValidationError):
            service.submit_application(application_data(full_name='   '))


class TestArchive:
    """Archiving and listing"""
    
    def test_archive_hides_from_active_list(self, service, users):
        admin_id = users['admin'].id
        application_id = service.submit_application(application_data())['application_id']
        
        service.archive_application(admin_id, application_id)
        application = service.get_application(admin_id, application_id)
        assert application['archived_at'] is not None
        assert application['archived_by'] == admin_id
        
        active = service.list_applications(admin_id, include_archived=False)
        assert active['total_count'] == 0
        
        archived = service.list_applications(admin_id, include_archived=True)
        assert archived['total_count'] == 1
        
        service.unarchive_application(admin_id, application_id)
        assert service.list_applications(admin_id)['total_count'] == 1
        assert service.get_application(admin_id, application_id)['archived_by'] is None
    
    def test_only_admin(self, service, users):
        application_id = service.submit_application(application_data())['application_id']
        with pytest.raises(AuthorizationError):
            service.archive_application(users['buddy'].id, application_id)
        with pytest.raises(AuthorizationError):
            service.list_applications(users['buddy'].id)
    
    def test_archive_missing(self, service, users):
        with pytest.raises(NotFoundError):
            service.archive_application(users['admin'].id, 999)
    
    def test_grouping_and_counts(self, service, users):
        admin_id = users['admin'].id
        service.submit_application(application_data())
        archived_id = service.submit_application(application_data(full_name='Ruth Ong'))['application_id']
        
        old = DatabaseManager(JCEPApplication).create(
            submitted_at=datetime(2023, 5, 1),
            submission_year=2023,
            full_name='Old Applicant',
            contact_number='90000000',
            age_group_choice1=AgeGroup.RK,
            reason_for_choice1='Why not',
            acknowledged_motto_and_pledge=True
        )
        service.archive_application(admin_id, archived_id)
        
        listing = service.list_applications(admin_id)
        this_year = datetime.utcnow().year
        assert listing['years'] == [this_year, 2023]
        assert len(listing['grouped_by_year'][this_year]) == 1
        assert listing['grouped_by_year'][2023][0]['id'] == old.id
        
        # Counts include archived applications
        counts = service.get_applications_count_by_year(admin_id)
        assert counts['count_by_year'] == {this_year: 2, 2023: 1}
        assert counts['total_count'] == 3
