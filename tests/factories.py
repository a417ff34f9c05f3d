"""Request payloads shared by the review form tests"""
from datetime import datetime
from app.utils.review_sections import QUESTIONS, BUDDY_EVALUATION, JC_REFLECTION, JC_FEEDBACK


def form_data(users, **overrides):
    data = {
        'rotation_year': 2025,
        'rotation_quarter': 1,
        'buddy_user_id': users['buddy'].id,
        'buddy_name': 'Grace Buddy',
        'junior_commander_user_id': users['jc'].id,
        'junior_commander_name': 'Daniel JC',
        'age_group': 'DR',
        'evaluation_date': datetime(2025, 3, 30).isoformat(),
    }
    data.update(overrides)
    return data


def answers(section, answer='x'):
    """A full set of responses for one section"""
    return {
        field: {'question_text': text, 'answer': answer}
        for field, text in QUESTIONS[section].items()
    }


def buddy_answers(answer='x'):
    return answers(BUDDY_EVALUATION, answer)


def reflection_answers(answer='x'):
    return answers(JC_REFLECTION, answer)


def feedback_answers(answer='x'):
    return answers(JC_FEEDBACK, answer)
