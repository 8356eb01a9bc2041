"""
Request-scoped dependencies: who is acting, and may they do this.
"""

from fastapi import Depends, HTTPException, Request

from ..core import config, dao
from ..core.access import Capability, has_capability
from ..core.schema import Actor
from ..util.logging import logger


def _extract_user_id(request: Request) -> str:
    """Acting user id from the configured header; empty when absent."""
    return (request.headers.get(config.ACTOR_HEADER) or "").strip()


def current_actor(request: Request) -> Actor:
    """Resolve the acting user. Unknown or inactive users are unauthenticated."""
    user_id = _extract_user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail=f"Missing {config.ACTOR_HEADER} header")

    actor = dao.get_actor(user_id)
    if actor is None or not actor.is_active:
        logger.log_operation("authenticate", "denied", {"user_id": user_id})
        raise HTTPException(status_code=401, detail="Unknown or inactive user")
    return actor


def require_capability(capability: Capability):
    """Dependency factory rejecting actors without `capability` with 403."""
    def checker(actor: Actor = Depends(current_actor)) -> Actor:
        if not has_capability(actor, capability):
            logger.log_access_denied(actor.id, capability.value, "api")
            raise HTTPException(status_code=403, detail=f"Permission required: {capability.value}")
        return actor
    return checker
