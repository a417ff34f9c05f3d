"""
Section layout, question catalogue and completion predicates for review forms.

Completion is always derived from the stored answers and never persisted:
a section is complete when every answer is non-empty after trimming, and
the JC reflection additionally needs a next rotation preference.
"""
from typing import Dict


BUDDY_EVALUATION = 'buddy_evaluation'
JC_REFLECTION = 'jc_reflection'
JC_FEEDBACK = 'jc_feedback'

SECTION_NAMES = (BUDDY_EVALUATION, JC_REFLECTION, JC_FEEDBACK)

SECTION_FIELDS = {
    BUDDY_EVALUATION: (
        'tasks_participated',
        'strengths',
        'areas_for_improvement',
        'words_of_encouragement',
    ),
    JC_REFLECTION: (
        'activities_participated',
        'learnings_from_jcep',
        'what_to_do_differently',
        'goals_for_next_rotation',
    ),
    JC_FEEDBACK: (
        'gratitude_to_buddy',
        'program_feedback',
    ),
}

SECTION_TITLES = {
    BUDDY_EVALUATION: 'Buddy evaluation',
    JC_REFLECTION: 'Junior Commander reflection',
    JC_FEEDBACK: 'Junior Commander feedback',
}

# Current wording. Stored answers keep the text they were written against.
QUESTIONS = {
    BUDDY_EVALUATION: {
        'tasks_participated': 'What were some tasks that the Junior Commander participated in?',
        'strengths': "What are some of the Junior Commander's strengths, and which areas did they perform well in?",
        'areas_for_improvement': 'What are some areas of improvement for the Junior Commander? '
                                 'Please provide specific examples.',
        'words_of_encouragement': 'Any words of encouragement for the Junior Commander?',
    },
    JC_REFLECTION: {
        'activities_participated': 'What were some memorable or impactful activities that you participated in '
                                   'during this rotation?',
        'learnings_from_jcep': 'What have you learned in your experience during the JCEP? '
                               '(Consider devotions, ministry impact, personal growth)',
        'what_to_do_differently': 'Is there anything you would have done differently in this rotation?',
        'goals_for_next_rotation': 'What are some things you would like to focus on in your next rotation? '
                                   'Any areas that you need encouragement in or prayer for?',
    },
    JC_FEEDBACK: {
        'gratitude_to_buddy': 'Any words of encouragement or gratitude to your buddy? :)',
        'program_feedback': 'Any feedback for the JCEP programme? (What went well, what could be improved)',
    },
}


def _answer(section: Dict, field: str) -> str:
    response = section.get(field) or {}
    return response.get('answer') or ''


def _all_answered(section: Dict, section_name: str) -> bool:
    return all(_answer(section, field).strip() != '' for field in SECTION_FIELDS[section_name])


def is_buddy_evaluation_complete(form) -> bool:
    if not form.buddy_evaluation:
        return False
    return _all_answered(form.buddy_evaluation, BUDDY_EVALUATION)


def is_jc_reflection_complete(form) -> bool:
    if not form.jc_reflection or not form.next_rotation_preference:
        return False
    return _all_answered(form.jc_reflection, JC_REFLECTION)


def is_jc_feedback_complete(form) -> bool:
    if not form.jc_feedback:
        return False
    return _all_answered(form.jc_feedback, JC_FEEDBACK)


def is_form_fully_complete(form) -> bool:
    return (
        is_buddy_evaluation_complete(form)
        and is_jc_reflection_complete(form)
        and is_jc_feedback_complete(form)
    )


def get_section_completion_summary(form) -> Dict:
    """Progress summary used by listings and the form view"""
    buddy_evaluation = is_buddy_evaluation_complete(form)
    jc_reflection = is_jc_reflection_complete(form)
    jc_feedback = is_jc_feedback_complete(form)

    completed_count = sum([buddy_evaluation, jc_reflection, jc_feedback])
    total_sections = len(SECTION_NAMES)

    return {
        'buddy_evaluation': buddy_evaluation,
        'jc_reflection': jc_reflection,
        'jc_feedback': jc_feedback,
        'all_complete': completed_count == total_sections,
        'completed_count': completed_count,
        'total_sections': total_sections,
    }


def get_missing_sections(form) -> list:
    """Sections not yet written at all (presence, not completeness)"""
    return [name for name in SECTION_NAMES if getattr(form, name) is None]
