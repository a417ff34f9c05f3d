from flask import Blueprint, request, jsonify
from app.services.application_service import ApplicationService
from app.middleware.auth import require_auth, optional_auth
from app.utils.errors import JCEPError
from app.utils.logger import get_logger

bp = Blueprint('applications', __name__)
logger = get_logger(__name__)
application_service = ApplicationService()


def _flag(value) -> bool:
    return str(value).lower() in ('1', 'true', 'yes')


@bp.route('', methods=['POST'])
@optional_auth
def submit_application(current_user):
    """Submit a JCEP application (no login needed)"""
    try:
        data = request.get_json(silent=True) or {}
        
        required_fields = ['full_name', 'contact_number', 'age_group_choice1', 'reason_for_choice1']
        for field in required_fields:
            if field not in data:
                return jsonify({'error': f'{field} is required'}), 400
        
        user_id = current_user['user_id'] if current_user else None
        result = application_service.submit_application(data, user_id=user_id)
        
        return jsonify(result), 201
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Application submission error: {str(e)}")
        return jsonify({'error': 'Failed to submit application'}), 500


@bp.route('', methods=['GET'])
@require_auth
def list_applications(current_user):
    """List applications grouped by year (admin only)"""
    try:
        include_archived = _flag(request.args.get('include_archived', 'false'))
        result = application_service.list_applications(current_user['user_id'], include_archived)
        return jsonify(result), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error listing applications: {str(e)}")
        return jsonify({'error': 'Failed to list applications'}), 500


@bp.route('/counts', methods=['GET'])
@require_auth
def get_applications_count_by_year(current_user):
    """Application counts per year (admin only)"""
    try:
        result = application_service.get_applications_count_by_year(current_user['user_id'])
        return jsonify(result), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error counting applications: {str(e)}")
        return jsonify({'error': 'Failed to count applications'}), 500


@bp.route('/<int:application_id>', methods=['GET'])
@require_auth
def get_application(application_id, current_user):
    """Get a single application (admin only)"""
    try:
        result = application_service.get_application(current_user['user_id'], application_id)
        return jsonify(result), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting application {application_id}: {str(e)}")
        return jsonify({'error': 'Failed to get application'}), 500


@bp.route('/<int:application_id>/archive', methods=['POST'])
@require_auth
def archive_application(application_id, current_user):
    """Archive an application (admin only)"""
    try:
        application_service.archive_application(current_user['user_id'], application_id)
        return jsonify({'message': 'Application archived'}), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error archiving application {application_id}: {str(e)}")
        return jsonify({'error': 'Failed to archive application'}), 500


@bp.route('/<int:application_id>/unarchive', methods=['POST'])
@require_auth
def unarchive_application(application_id, current_user):
    """Restore an archived application (admin only)"""
    try:
        application_service.unarchive_application(current_user['user_id'], application_id)
        return jsonify({'message': 'Application restored'}), 200
        
    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error unarchiving application {application_id}: {str(e)}")
        return jsonify({'error': 'Failed to unarchive application'}), 500
