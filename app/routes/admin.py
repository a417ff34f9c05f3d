from flask import Blueprint, request, jsonify, Response
from datetime import datetime
from app.middleware.auth import require_auth, require_admin
from app.services.review_form_service import ReviewFormService
from app.services.application_service import ApplicationService
from app.utils.errors import JCEPError
from app.utils.rotation import get_age_group_label
from app.utils.logger import get_logger
import csv
import io

bp = Blueprint('admin', __name__)
logger = get_logger(__name__)
review_service = ReviewFormService()
application_service = ApplicationService()

REVIEW_EXPORT_FIELDS = [
    'Rotation Year', 'Rotation Quarter', 'Junior Commander', 'Buddy', 'Age Group',
    'Evaluation Date', 'Status', 'Next Rotation Preference', 'Buddy Evaluation Complete',
    'JC Reflection Complete', 'JC Feedback Complete', 'Submitted At', 'Submitted By'
]

APPLICATION_EXPORT_FIELDS = [
    'Submitted At', 'Submission Year', 'Full Name', 'Contact Number',
    'Age Group Choice 1', 'Reason For Choice 1', 'Age Group Choice 2',
    'Reason For Choice 2', 'Acknowledged', 'Archived At'
]


def _format_date(value, fmt):
    if not value:
        return ''
    return datetime.fromisoformat(value).strftime(fmt)


def _csv_response(fieldnames, rows, filename):
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()
    writer.writerows(rows)

    return Response(
        output.getvalue(),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@bp.route('/dashboard', methods=['GET'])
@require_auth
@require_admin
def dashboard(current_user):
    """Review progress and application numbers for a year"""
    try:
        year = request.args.get('year', type=int) or datetime.utcnow().year

        forms = review_service.get_all_review_forms_by_year(current_user['user_id'], year)
        counts = application_service.get_applications_count_by_year(current_user['user_id'])

        by_status = {'draft': 0, 'in_progress': 0, 'submitted': 0}
        by_age_group = {}
        fully_complete = 0
        for form in forms:
            by_status[form['status']] += 1
            by_age_group[form['age_group']] = by_age_group.get(form['age_group'], 0) + 1
            if form['completion']['all_complete']:
                fully_complete += 1

        return jsonify({
            'year': year,
            'review_forms': {
                'total': len(forms),
                'by_status': by_status,
                'by_age_group': by_age_group,
                'fully_complete': fully_complete
            },
            'applications': {
                'this_year': counts['count_by_year'].get(year, 0),
                'total': counts['total_count']
            }
        }), 200

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting dashboard: {str(e)}")
        return jsonify({'error': 'Failed to get dashboard'}), 500


@bp.route('/export/reviews', methods=['GET'])
@require_auth
@require_admin
def export_reviews(current_user):
    """Export a year's review forms as CSV"""
    try:
        year = request.args.get('year', type=int)
        if not year:
            return jsonify({'error': 'year is required'}), 400

        forms = review_service.get_all_review_forms_by_year(
            current_user['user_id'],
            year,
            status=request.args.get('status'),
            age_group=request.args.get('age_group'),
            quarter=request.args.get('quarter', type=int)
        )
        if not forms:
            return jsonify({'error': 'No forms to export'}), 404

        rows = [{
            'Rotation Year': form['rotation_year'],
            'Rotation Quarter': form['rotation_quarter'],
            'Junior Commander': form['junior_commander_name'],
            'Buddy': form['buddy_name'],
            'Age Group': form['age_group'],
            'Evaluation Date': _format_date(form['evaluation_date'], '%Y-%m-%d'),
            'Status': form['status'],
            'Next Rotation Preference': form['next_rotation_preference'] or '',
            'Buddy Evaluation Complete': 'Yes' if form['buddy_evaluation'] else 'No',
            'JC Reflection Complete': 'Yes' if form['jc_reflection'] else 'No',
            'JC Feedback Complete': 'Yes' if form['jc_feedback'] else 'No',
            'Submitted At': _format_date(form['submitted_at'], '%Y-%m-%d %H:%M'),
            'Submitted By': form['submitted_by'] or ''
        } for form in forms]

        logger.info(f"Exported {len(rows)} review forms for {year}")

        return _csv_response(
            REVIEW_EXPORT_FIELDS,
            rows,
            f'jcep-review-forms-{year}-{datetime.utcnow().strftime("%Y%m%d")}.csv'
        )

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error exporting review forms: {str(e)}")
        return jsonify({'error': 'Failed to export review forms'}), 500


@bp.route('/export/applications', methods=['GET'])
@require_auth
@require_admin
def export_applications(current_user):
    """Export every application as CSV"""
    try:
        applications = application_service.get_all_applications(current_user['user_id'])

        rows = [{
            'Submitted At': _format_date(app['submitted_at'], '%Y-%m-%d %H:%M'),
            'Submission Year': app['submission_year'],
            'Full Name': app['full_name'],
            'Contact Number': app['contact_number'],
            'Age Group Choice 1': get_age_group_label(app['age_group_choice1']),
            'Reason For Choice 1': app['reason_for_choice1'],
            'Age Group Choice 2': get_age_group_label(app['age_group_choice2']) if app['age_group_choice2'] else '',
            'Reason For Choice 2': app['reason_for_choice2'] or '',
            'Acknowledged': 'Yes' if app['acknowledged_motto_and_pledge'] else 'No',
            'Archived At': _format_date(app['archived_at'], '%Y-%m-%d %H:%M')
        } for app in applications]

        return _csv_response(
            APPLICATION_EXPORT_FIELDS,
            rows,
            f'jcep-applications-{datetime.utcnow().strftime("%Y%m%d")}.csv'
        )

    except JCEPError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error exporting applications: {str(e)}")
        return jsonify({'error': 'Failed to export applications'}), 500
