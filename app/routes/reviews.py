from flask import Blueprint, request, jsonify
from app.services.review_form_service import ReviewFormService
from app.middleware.auth import require_auth
from app.utils.errors import JCEPError
from app.utils.review_sections import QUESTIONS, SECTION_FIELDS
from app.utils.rotation import AGE_GROUP_LABELS, get_rotation_quarter_options, get_default_rotation_quarter
from app.utils.logger import get_logger

bp = Blueprint('reviews', __name__)
logger = get_logger(__name__)
review_service = ReviewFormService()


def _json_body():
    return request.get_json(silent=True) or {}


@bp.route('/questions', methods=['GET'])
def get_questions():
    """Current question wording, age groups and rotation options"""
    return jsonify({
        'questions': QUESTIONS,
        'section_fields': {name: list(fields) for name, fields in SECTION_FIELDS.items()},
        'age_groups': AGE_GROUP_LABELS,
        'rotation_quarters': get_rotation_quarter_options(),
        'default_rotation_quarter': get_default_rotation_quarter()
    }), 200


@bp.route('', methods=['POST'])
@require_auth
def create_review_form(current_user):
    """Create a review form and issue its access links"""
    try:
        data = _json_body()

        required_fields = [
            'rotation_year', 'rotation_quarter', 'buddy_user_id', 'buddy_name',
            'junior_commander_name', 'age_group', 'evaluation_date'
        ]
        for field in required_fields:
            if field not in data:
                return jsonify({'error': f'{field} is required'}), 400

        result = review_service.create_review_form(current_user['user_id'], data)
        return jsonify(result), 201

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error creating review form: {str(e)}")
        return jsonify({'error': 'Failed to create review form'}), 500


@bp.route('/<int:form_id>', methods=['GET'])
@require_auth
def get_review_form(form_id, current_user):
    """Get a review form"""
    try:
        form = review_service.get_review_form(current_user['user_id'], form_id)
        return jsonify(form), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting review form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to get review form'}), 500


@bp.route('/<int:form_id>/particulars', methods=['PUT'])
@require_auth
def update_particulars(form_id, current_user):
    """Update the particulars section"""
    try:
        review_service.update_particulars(current_user['user_id'], form_id, _json_body())
        return jsonify({'message': 'Particulars updated'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error updating particulars of form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to update particulars'}), 500


@bp.route('/<int:form_id>/buddy-evaluation', methods=['PUT'])
@require_auth
def update_buddy_evaluation(form_id, current_user):
    """Save the buddy evaluation section"""
    try:
        review_service.update_buddy_evaluation(current_user['user_id'], form_id, _json_body())
        return jsonify({'message': 'Buddy evaluation saved'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error saving buddy evaluation of form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to save buddy evaluation'}), 500


@bp.route('/<int:form_id>/jc-reflection', methods=['PUT'])
@require_auth
def update_jc_reflection(form_id, current_user):
    """Save the Junior Commander reflection section"""
    try:
        data = _json_body()
        review_service.update_jc_reflection(
            current_user['user_id'], form_id, data, data.get('next_rotation_preference')
        )
        return jsonify({'message': 'JC reflection saved'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error saving JC reflection of form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to save JC reflection'}), 500


@bp.route('/<int:form_id>/jc-feedback', methods=['PUT'])
@require_auth
def update_jc_feedback(form_id, current_user):
    """Save the Junior Commander feedback section"""
    try:
        review_service.update_jc_feedback(current_user['user_id'], form_id, _json_body())
        return jsonify({'message': 'JC feedback saved'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error saving JC feedback of form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to save JC feedback'}), 500


@bp.route('/<int:form_id>/submit', methods=['POST'])
@require_auth
def submit_review_form(form_id, current_user):
    """Submit a completed review form"""
    try:
        review_service.submit_review_form(current_user['user_id'], form_id)
        return jsonify({'message': 'Review form submitted'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error submitting form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to submit review form'}), 500


@bp.route('/<int:form_id>', methods=['DELETE'])
@require_auth
def delete_review_form(form_id, current_user):
    """Delete a review form"""
    try:
        review_service.delete_review_form(current_user['user_id'], form_id)
        return jsonify({'message': 'Review form deleted'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error deleting form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to delete review form'}), 500


@bp.route('/<int:form_id>/regenerate-tokens', methods=['POST'])
@require_auth
def regenerate_access_tokens(form_id, current_user):
    """Issue new access links, invalidating the old ones (admin only)"""
    try:
        result = review_service.regenerate_access_tokens(current_user['user_id'], form_id)
        return jsonify(result), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error regenerating tokens of form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to regenerate access tokens'}), 500


@bp.route('/<int:form_id>/visibility', methods=['PUT'])
@require_auth
def toggle_response_visibility(form_id, current_user):
    """Change which answers each party can see (admin only)"""
    try:
        data = _json_body()
        result = review_service.toggle_response_visibility(
            current_user['user_id'],
            form_id,
            buddy_responses_visible_to_jc=data.get('buddy_responses_visible_to_jc'),
            jc_responses_visible_to_buddy=data.get('jc_responses_visible_to_buddy')
        )
        return jsonify(result), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error changing visibility of form {form_id}: {str(e)}")
        return jsonify({'error': 'Failed to change visibility'}), 500


@bp.route('/year/<int:year>', methods=['GET'])
@require_auth
def get_my_review_forms(year, current_user):
    """Get the caller's review forms for a year"""
    try:
        forms = review_service.get_review_forms_by_year(current_user['user_id'], year)
        return jsonify(forms), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting review forms for {year}: {str(e)}")
        return jsonify({'error': 'Failed to get review forms'}), 500


@bp.route('/buddy', methods=['GET'])
@require_auth
def get_buddy_review_forms(current_user):
    """Get a buddy's review forms (own, or any buddy for admins)"""
    try:
        forms = review_service.get_review_forms_by_buddy(
            current_user['user_id'],
            buddy_user_id=request.args.get('buddy_user_id', type=int),
            year=request.args.get('year', type=int),
            quarter=request.args.get('quarter', type=int)
        )
        return jsonify(forms), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting buddy review forms: {str(e)}")
        return jsonify({'error': 'Failed to get review forms'}), 500


@bp.route('/user', methods=['GET'])
@require_auth
def get_user_review_forms(current_user):
    """Get every form a user takes part in"""
    try:
        forms = review_service.get_review_forms_by_user(
            current_user['user_id'],
            target_user_id=request.args.get('user_id', type=int)
        )
        return jsonify(forms), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting user review forms: {str(e)}")
        return jsonify({'error': 'Failed to get review forms'}), 500


@bp.route('/all/<int:year>', methods=['GET'])
@require_auth
def get_all_review_forms(year, current_user):
    """Get all review forms for a year (admin only)"""
    try:
        forms = review_service.get_all_review_forms_by_year(
            current_user['user_id'],
            year,
            status=request.args.get('status'),
            age_group=request.args.get('age_group'),
            quarter=request.args.get('quarter', type=int)
        )
        return jsonify({'forms': forms, 'total_count': len(forms)}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting all review forms for {year}: {str(e)}")
        return jsonify({'error': 'Failed to get review forms'}), 500


# Secret link access. The token is the only credential on these routes.

@bp.route('/token/<token>', methods=['GET'])
def get_review_form_by_token(token):
    """Get a review form through an access link"""
    try:
        form = review_service.get_review_form_by_token(token)
        return jsonify({'form': form, 'access_level': form['access_level']}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting review form by token: {str(e)}")
        return jsonify({'error': 'Failed to get review form'}), 500


def _token_form_id(data):
    form_id = data.get('form_id')
    if isinstance(form_id, bool) or not isinstance(form_id, int):
        return None
    return form_id


@bp.route('/token/<token>/particulars', methods=['PUT'])
def update_particulars_by_token(token):
    """Update particulars through an access link"""
    try:
        data = _json_body()
        form_id = _token_form_id(data)
        if form_id is None:
            return jsonify({'error': 'form_id is required'}), 400

        review_service.update_particulars_by_token(form_id, token, data)
        return jsonify({'message': 'Particulars updated'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error updating particulars by token: {str(e)}")
        return jsonify({'error': 'Failed to update particulars'}), 500


@bp.route('/token/<token>/buddy-evaluation', methods=['PUT'])
def update_buddy_evaluation_by_token(token):
    """Save the buddy evaluation through the buddy's link"""
    try:
        data = _json_body()
        form_id = _token_form_id(data)
        if form_id is None:
            return jsonify({'error': 'form_id is required'}), 400

        review_service.update_buddy_evaluation_by_token(form_id, token, data)
        return jsonify({'message': 'Buddy evaluation saved'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error saving buddy evaluation by token: {str(e)}")
        return jsonify({'error': 'Failed to save buddy evaluation'}), 500


@bp.route('/token/<token>/jc-reflection', methods=['PUT'])
def update_jc_reflection_by_token(token):
    """Save the JC reflection through the JC's link"""
    try:
        data = _json_body()
        form_id = _token_form_id(data)
        if form_id is None:
            return jsonify({'error': 'form_id is required'}), 400

        review_service.update_jc_reflection_by_token(
            form_id, token, data, data.get('next_rotation_preference')
        )
        return jsonify({'message': 'JC reflection saved'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error saving JC reflection by token: {str(e)}")
        return jsonify({'error': 'Failed to save JC reflection'}), 500


@bp.route('/token/<token>/jc-feedback', methods=['PUT'])
def update_jc_feedback_by_token(token):
    """Save the JC feedback through the JC's link"""
    try:
        data = _json_body()
        form_id = _token_form_id(data)
        if form_id is None:
            return jsonify({'error': 'form_id is required'}), 400

        review_service.update_jc_feedback_by_token(form_id, token, data)
        return jsonify({'message': 'JC feedback saved'}), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error saving JC feedback by token: {str(e)}")
        return jsonify({'error': 'Failed to save JC feedback'}), 500
