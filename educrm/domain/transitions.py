"""State machines for applications and waitlist entries."""

from enum import Enum

from educrm.exceptions import InvalidOperationException
from educrm.models.application import ApplicationStatus
from educrm.models.waitlist import WaitlistStatus


class ApplicationAction(str, Enum):
    START_REVIEW = "start_review"
    APPROVE = "approve"
    REJECT = "reject"
    WITHDRAW = "withdraw"
    ENROLL = "enroll"


class WaitlistAction(str, Enum):
    OFFER = "offer"
    ACCEPT = "accept"
    DECLINE = "decline"
    EXPIRE = "expire"


_S = ApplicationStatus
APPLICATION_TRANSITIONS: dict[ApplicationAction, dict[ApplicationStatus, ApplicationStatus]] = {
    ApplicationAction.START_REVIEW: {_S.SUBMITTED: _S.UNDER_REVIEW},
    ApplicationAction.APPROVE: {_S.SUBMITTED: _S.APPROVED, _S.UNDER_REVIEW: _S.APPROVED},
    ApplicationAction.REJECT: {_S.SUBMITTED: _S.REJECTED, _S.UNDER_REVIEW: _S.REJECTED},
    ApplicationAction.WITHDRAW: {
        _S.SUBMITTED: _S.WITHDRAWN,
        _S.UNDER_REVIEW: _S.WITHDRAWN,
        _S.APPROVED: _S.WITHDRAWN,
    },
    ApplicationAction.ENROLL: {_S.APPROVED: _S.ENROLLED},
}

_W = WaitlistStatus
WAITLIST_TRANSITIONS: dict[WaitlistAction, dict[WaitlistStatus, WaitlistStatus]] = {
    WaitlistAction.OFFER: {_W.WAITING: _W.OFFERED},
    WaitlistAction.ACCEPT: {_W.WAITING: _W.ACCEPTED, _W.OFFERED: _W.ACCEPTED},
    WaitlistAction.DECLINE: {_W.WAITING: _W.DECLINED, _W.OFFERED: _W.DECLINED},
    WaitlistAction.EXPIRE: {_W.WAITING: _W.EXPIRED, _W.OFFERED: _W.EXPIRED},
}


def next_application_status(current: str, action: ApplicationAction) -> ApplicationStatus:
    """Resolve the status an application moves to, or raise INVALID_OPERATION."""
    target = APPLICATION_TRANSITIONS[ApplicationAction(action)].get(ApplicationStatus(current))
    if target is None:
        raise InvalidOperationException(
            f"Cannot {ApplicationAction(action).value.replace('_', ' ')} an application in status '{current}'",
            details={"status": current, "action": ApplicationAction(action).value},
        )
    return target


def next_waitlist_status(current: str, action: WaitlistAction) -> WaitlistStatus:
    """Resolve the status a waitlist entry moves to, or raise INVALID_OPERATION."""
    target = WAITLIST_TRANSITIONS[WaitlistAction(action)].get(WaitlistStatus(current))
    if target is None:
        raise InvalidOperationException(
            f"Cannot {WaitlistAction(action).value} a waitlist entry in status '{current}'",
            details={"status": current, "action": WaitlistAction(action).value},
        )
    return target
