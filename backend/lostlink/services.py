"""Long-lived collaborators live on the app; matching components are built per request."""
from __future__ import annotations

from flask import Flask, current_app

from .integrations.openai import OpenAIClient
from .integrations.storage import ObjectStore
from .matching import ClaimCoordinator, MatchingPipeline, MatchingPolicy
from .models import MatchNotification

EXTENSION_KEY = "lostlink"


def init_services(app: Flask) -> None:
    cfg = app.config
    app.extensions[EXTENSION_KEY] = {
        "ai": OpenAIClient(
            cfg.get("OPENAI_API_KEY"),
            base_url=cfg["OPENAI_BASE_URL"],
            embedding_model=cfg["EMBEDDING_MODEL"],
            vision_model=cfg["VISION_MODEL"],
            dimension=int(cfg["EMBEDDING_DIM"]),
            timeout=float(cfg["UPSTREAM_TIMEOUT"]),
        ),
        "objects": ObjectStore(cfg),
        "policy": MatchingPolicy.from_config(cfg),
    }


def _enqueue_alert_email(notif: MatchNotification) -> None:
    from .tasks.jobs.alerts import deliver_match_alert

    deliver_match_alert.delay(int(notif.id))


def get_pipeline(logger) -> MatchingPipeline:
    ext = current_app.extensions[EXTENSION_KEY]
    dispatch = _enqueue_alert_email if current_app.config.get("ALERT_EMAILS_ENABLED") else None
    return MatchingPipeline(ext["ai"], ext["objects"], ext["policy"], logger=logger, alert_dispatch=dispatch)


def get_claims(logger) -> ClaimCoordinator:
    return ClaimCoordinator(logger=logger)
