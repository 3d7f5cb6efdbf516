"""
Membership and visibility decisions for study groups.

Everything here is pure: the viewer's status is derived from the membership
rows of a group, and the affordance offered to the viewer is derived from the
group's visibility, its creator and that status. Rules are evaluated in order:

1. anonymous viewer            -> sign_in
2. viewer created the group    -> enter, with moderation
3. approved membership         -> enter
4. pending membership          -> pending (nothing to do)
5. no membership               -> join (public) / request (private)
6. rejected membership         -> join (public) / request_again (private)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel


class MemberStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ViewerStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    NONE = "none"


class Affordance(str, Enum):
    SIGN_IN = "sign_in"
    ENTER = "enter"
    PENDING = "pending"
    JOIN = "join"
    REQUEST = "request"
    REQUEST_AGAIN = "request_again"


class MembershipRow(BaseModel):
    group_id: str
    user_id: str
    status: MemberStatus = MemberStatus.PENDING


@dataclass(frozen=True)
class GroupAccess:
    affordance: Affordance
    can_enter: bool = False
    can_moderate: bool = False

    @property
    def can_join(self) -> bool:
        return self.affordance is Affordance.JOIN

    @property
    def can_request(self) -> bool:
        return self.affordance in (Affordance.REQUEST, Affordance.REQUEST_AGAIN)


@dataclass(frozen=True)
class MembershipCounts:
    member_count: int
    pending_count: int


def viewer_status(rows: Iterable[MembershipRow], viewer_id: Optional[str]) -> ViewerStatus:
    if viewer_id is None:
        return ViewerStatus.NONE
    for row in rows:
        if row.user_id == viewer_id:
            return ViewerStatus(row.status.value)
    return ViewerStatus.NONE


def count_memberships(rows: Iterable[MembershipRow]) -> MembershipCounts:
    approved = pending = 0
    for row in rows:
        if row.status is MemberStatus.APPROVED:
            approved += 1
        elif row.status is MemberStatus.PENDING:
            pending += 1
    return MembershipCounts(member_count=approved, pending_count=pending)


def decide(
    is_private: bool,
    created_by: Optional[str],
    viewer_id: Optional[str],
    status: ViewerStatus = ViewerStatus.NONE,
) -> GroupAccess:
    if viewer_id is None:
        return GroupAccess(Affordance.SIGN_IN)
    if created_by is not None and viewer_id == created_by:
        return GroupAccess(Affordance.ENTER, can_enter=True, can_moderate=True)
    if status is ViewerStatus.APPROVED:
        return GroupAccess(Affordance.ENTER, can_enter=True)
    if status is ViewerStatus.PENDING:
        return GroupAccess(Affordance.PENDING)
    if not is_private:
        return GroupAccess(Affordance.JOIN)
    if status is ViewerStatus.REJECTED:
        return GroupAccess(Affordance.REQUEST_AGAIN)
    return GroupAccess(Affordance.REQUEST)
