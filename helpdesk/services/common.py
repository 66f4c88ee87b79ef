from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from helpdesk.errors import Forbidden, HelpdeskError, NotFound
from helpdesk.rules import Action, Principal, authorize
from helpdesk.schemas.common import BulkDeleteFailure, BulkDeleteResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def require(principal: Principal, action: Action, target: Any = None) -> None:
    """Raise Forbidden with the rule's reason when ``action`` is denied."""

    decision = authorize(principal, action, target)
    if decision.allowed:
        return

    action = Action(action)
    logger.info(
        "authz_denied",
        extra={
            "user_id": principal.user_id,
            "role": principal.role.value,
            "action": action.value,
            "reason": decision.reason,
        },
    )
    raise Forbidden(decision.reason or "forbidden", action=action.value)


def get_or_404(db: Session, model: type[T], entity_id: int, label: str) -> T:
    obj = db.get(model, entity_id)
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


def bulk_delete(ids: Iterable[int], delete_one: Callable[[int], None]) -> BulkDeleteResult:
    """
    Run ``delete_one`` for each id in order. Each call commits on its own;
    a failing item is recorded and the loop moves on.
    """

    result = BulkDeleteResult()
    for entity_id in ids:
        try:
            delete_one(entity_id)
        except HelpdeskError as exc:
            result.failed.append(BulkDeleteFailure(id=entity_id, code=exc.code, message=exc.message))
            continue
        result.deleted.append(entity_id)
    return result
