# app/infra/audit.py
"""
Journal d'audit des opérations d'écriture.

Les événements partent sur le logger dédié "sop.audit" : le routage
(fichier, SIEM, stdout) se configure côté logging, pas ici.
"""
import json
import logging
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

audit_logger = logging.getLogger("sop.audit")


def log_audit_event(
    ctx,
    action: str,
    entity: str,
    entity_id: Optional[Any] = None,
    before: Optional[Any] = None,
    after: Optional[Any] = None,
) -> dict:
    """
    Émet un événement d'audit et le retourne (utile aux tests).

    ctx : AuthContext (restaurant_id, user_id, role).
    """
    event = {
        "restaurant_id": ctx.restaurant_id,
        "actor_id": ctx.user_id,
        "actor_role": getattr(ctx.role, "value", ctx.role),
        "action": action,
        "entity": entity,
        "entity_id": entity_id,
        "before": jsonable_encoder(before) if before is not None else None,
        "after": jsonable_encoder(after) if after is not None else None,
    }
    audit_logger.info("%s %s", action, json.dumps(event, default=str))
    return event
