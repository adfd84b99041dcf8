import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import UUID

log = logging.getLogger(__name__)


async def run_post_commit(name: str, hook: Callable[..., Awaitable[Any]], *args, **kwargs) -> bool:
    """
    Runs a side effect that follows an already-committed write.

    The authoritative row is durable by the time this runs, so a failing hook is
    logged and swallowed: it must never turn a successful request into an error.
    """
    try:
        await hook(*args, **kwargs)
        return True
    except Exception:
        log.exception(f"Post-commit hook '{name}' failed; primary change is kept.")
        return False


# ----------- Wire events published to the live order stream -----------

def order_created_event(order_id: UUID) -> Dict[str, Any]:
    return {"type": "order_created", "order_id": str(order_id)}


def order_status_updated_event(order_id: UUID, status: str) -> Dict[str, Any]:
    return {"type": "order_status_updated", "order_id": str(order_id), "status": status}


def order_cancelled_event(
    order_id: UUID,
    customer_name: Optional[str],
    customer_phone: Optional[str],
    total: Optional[float],
) -> Dict[str, Any]:
    return {
        "type": "order_cancelled",
        "order_id": str(order_id),
        "customer_name": customer_name,
        "customer_phone": customer_phone,
        "total": total,
    }


def order_deleted_event(order_id: UUID) -> Dict[str, Any]:
    return {"type": "order_deleted", "order_id": str(order_id)}
