"""
Who may see and change what on a review form.

Every read and write path resolves the caller to a single `Role` and then to
a `ReviewPermissions` record, whether the caller arrived with a login
(`SessionAccess`) or with a secret link (`TokenAccess`).
"""
import enum
import secrets
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Union

from app.utils.review_sections import BUDDY_EVALUATION, JC_REFLECTION, JC_FEEDBACK


class Role(enum.Enum):
    ADMIN = "admin"
    BUDDY = "buddy"
    JC = "jc"
    NONE = "none"


@dataclass(frozen=True)
class SessionAccess:
    """A logged-in caller"""
    user_id: int
    is_admin: bool = False


@dataclass(frozen=True)
class TokenAccess:
    """An anonymous caller presenting a review link secret"""
    token: str


AccessContext = Union[SessionAccess, TokenAccess]

# Which role writes which section
SECTION_OWNERS = {
    BUDDY_EVALUATION: Role.BUDDY,
    JC_REFLECTION: Role.JC,
    JC_FEEDBACK: Role.JC,
}


@dataclass(frozen=True)
class ReviewPermissions:
    role: Role
    via_token: bool
    can_view_buddy_evaluation: bool
    can_view_jc_reflection: bool
    can_view_jc_feedback: bool
    can_edit_buddy_evaluation: bool
    can_edit_jc_reflection: bool
    can_edit_jc_feedback: bool
    can_edit_particulars: bool
    can_submit: bool
    can_manage: bool  # tokens, visibility and deletion

    def can_view(self, section: str) -> bool:
        return getattr(self, f'can_view_{section}')

    def can_edit(self, section: str) -> bool:
        return getattr(self, f'can_edit_{section}')

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['role'] = self.role.value
        return data


def _tokens_match(presented: Optional[str], stored: Optional[str]) -> bool:
    if not presented or not stored:
        return False
    return secrets.compare_digest(presented.encode(), stored.encode())


def resolve_role(caller: AccessContext, form) -> Role:
    """Classify the caller against one form"""
    if isinstance(caller, TokenAccess):
        if _tokens_match(caller.token, form.buddy_access_token):
            return Role.BUDDY
        if _tokens_match(caller.token, form.jc_access_token):
            return Role.JC
        return Role.NONE

    if caller.is_admin:
        return Role.ADMIN
    if form.buddy_user_id == caller.user_id:
        return Role.BUDDY
    if form.junior_commander_user_id is not None and form.junior_commander_user_id == caller.user_id:
        return Role.JC
    return Role.NONE


def resolve_permissions(caller: AccessContext, form, role: Role = None) -> ReviewPermissions:
    """Permission flags for a caller on a form, re-derived on every request"""
    role = role or resolve_role(caller, form)
    via_token = isinstance(caller, TokenAccess)
    open_for_edits = not form.is_submitted

    is_admin = role == Role.ADMIN
    is_buddy = role == Role.BUDDY
    is_jc = role == Role.JC

    # A party always sees its own sections; the other party's sections
    # only when an admin has released them.
    can_view_buddy = is_admin or is_buddy or (is_jc and bool(form.buddy_responses_visible_to_jc))
    can_view_jc = is_admin or is_jc or (is_buddy and bool(form.jc_responses_visible_to_buddy))

    if via_token:
        can_edit_particulars = open_for_edits and role != Role.NONE
    else:
        is_creator = form.created_by == caller.user_id
        can_edit_particulars = open_for_edits and (is_admin or is_creator)

    return ReviewPermissions(
        role=role,
        via_token=via_token,
        can_view_buddy_evaluation=can_view_buddy,
        can_view_jc_reflection=can_view_jc,
        can_view_jc_feedback=can_view_jc,
        can_edit_buddy_evaluation=open_for_edits and (is_admin or is_buddy),
        can_edit_jc_reflection=open_for_edits and (is_admin or is_jc),
        can_edit_jc_feedback=open_for_edits and (is_admin or is_jc),
        can_edit_particulars=can_edit_particulars,
        can_submit=open_for_edits and not via_token and role != Role.NONE,
        can_manage=is_admin,
    )


def get_section_lock_message(section: str, role: Role) -> str:
    """Message shown next to a section the caller cannot use"""
    if role == Role.ADMIN:
        return 'View-only access as administrator'
    if role == Role.NONE:
        return 'You do not have access to this section'

    owner = SECTION_OWNERS[section]
    if owner == role:
        return 'You have access to this section'
    if owner == Role.BUDDY:
        return 'This section is only accessible to the Buddy'
    return 'This section is only accessible to the Junior Commander'
