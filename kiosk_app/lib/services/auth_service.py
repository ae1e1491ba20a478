import hmac
import logging
from typing import Optional

from flask import session

logger = logging.getLogger(__name__)

STAFF_SESSION_KEY = 'staff_authenticated'


def verify_passcode(candidate: Optional[str], expected: str) -> bool:
    """Check a staff passcode in constant time."""
    if not candidate:
        return False
    return hmac.compare_digest(candidate.strip().encode(), expected.encode())


def is_staff_authenticated() -> bool:
    return bool(session.get(STAFF_SESSION_KEY))


def mark_staff_authenticated() -> None:
    session[STAFF_SESSION_KEY] = True
    logger.info("Staff session authenticated")


def clear_staff_authentication() -> None:
    session.pop(STAFF_SESSION_KEY, None)
