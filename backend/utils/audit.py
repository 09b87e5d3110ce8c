import logging
from datetime import datetime, timezone

from config.constants import AUDIT_MODULE

logger = logging.getLogger(__name__)


async def write_audit_event(
    db,
    action: str,
    actor,
    target_uid: str,
    metadata: dict | None = None,
):
    """Append one audit row. Insert errors propagate to the route."""
    event = {
        "module": AUDIT_MODULE,
        **(metadata or {}),
        "action": action,
        "actorUid": actor.uid,
        "actorEmail": actor.email,
        "targetUid": target_uid,
        "createdAt": datetime.now(timezone.utc),
    }

    await db.audit_events.insert_one(event)
    logger.info("%s actor=%s target=%s", action, event["actorUid"], target_uid)
