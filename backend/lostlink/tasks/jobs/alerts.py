from __future__ import annotations

import logging

from lostlink.extensions import db
from lostlink.integrations.mail import send_mail
from lostlink.models import MatchNotification
from lostlink.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def notify_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/notify/{token}"


def compose_alert(notif: MatchNotification, base_url: str) -> tuple[str, str, str] | None:
    """(to, subject, body) for the lost item's reporter, or None when their contact is not an e-mail."""
    lost = notif.lost_item
    found = notif.found_item
    contact = (lost.contact_info or "").strip()
    if "@" not in contact:
        return None
    subject = f"Possible match for your lost item: {found.auto_title}"
    body = (
        "Someone reported a found item that looks like what you lost.\n\n"
        f"You reported: {lost.description}\n"
        f"Found: {found.auto_title} ({found.location})\n\n"
        f"See the details and the finder's contact here:\n{notify_url(base_url, notif.notification_token)}\n"
    )
    return contact, subject, body


@celery_app.task
def deliver_match_alert(notification_id: int) -> dict:
    from lostlink import create_app

    app = create_app()
    with app.app_context():
        notif = db.session.get(MatchNotification, notification_id)
        if notif is None:
            return {"sent": False, "reason": "missing"}
        message = compose_alert(notif, app.config["PUBLIC_BASE_URL"])
        if message is None:
            return {"sent": False, "reason": "no-email"}
        send_mail(app.config, *message)
        logger.info("match alert sent for notification %s", notification_id)
        return {"sent": True}
