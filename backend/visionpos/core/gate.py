"""Permission gate: session and RBAC enforcement in front of every handler."""

import logging
from datetime import datetime

from visionpos.core.errors import Forbidden, Unauthenticated
from visionpos.schemas.auth import Session

logger = logging.getLogger(__name__)


class PermissionGate:
    def check(
        self,
        required: frozenset[str],
        session: Session | None,
        now: datetime | None = None,
    ) -> None:
        """Raise unless the session holds ALL required permissions."""
        if not required:
            return
        if session is None:
            raise Unauthenticated()
        if session.is_expired(now):
            logger.info(f"Expired session for user {session.user_id}")
            raise Unauthenticated("Session expired")

        missing = sorted(required - session.permissions)
        if missing:
            logger.info(f"User {session.user_id} denied, missing: {', '.join(missing)}")
            raise Forbidden(f"Permission denied. Missing permissions: {', '.join(missing)}")
