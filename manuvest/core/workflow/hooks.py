"""In-process domain events.

Services fire an event after their change is committed; handlers run
synchronously in registration order. A failing handler is logged and
skipped, it never undoes the change that fired the event.

    from manuvest.core.workflow import hooks

    @hooks.on('pr.status_changed')
    def notify_pic(payload):
        ...

Events fired by ManuVest:
    pr.status_changed        pr_id, pr_number, from_status, status, user, note
    pr.deleted               pr_id, pr_number, user
    budget.item_transferred  item_id, new_item_id, from_plan_id, to_plan_id, reason, user
    project.deleted          project_id
"""

import logging
import threading
from typing import Callable, Dict, List

logger = logging.getLogger('manuvest.core.workflow.hooks')

Handler = Callable[[dict], None]

_registry: Dict[str, List[Handler]] = {}
_lock = threading.Lock()


def _name(handler) -> str:
    return getattr(handler, '__name__', repr(handler))


def on(event_type: str, handler: Handler = None):
    """Register handler for event_type. Without a handler, acts as a decorator."""
    if handler is None:
        def decorator(fn):
            on(event_type, fn)
            return fn
        return decorator

    with _lock:
        _registry.setdefault(event_type, []).append(handler)
    logger.debug(f'{event_type}: registered {_name(handler)}')
    return handler


def off(event_type: str, handler: Handler) -> bool:
    """Unregister one handler. Returns False if it was not registered."""
    with _lock:
        handlers = _registry.get(event_type, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del _registry[event_type]
    return True


def handlers(event_type: str) -> List[Handler]:
    with _lock:
        return list(_registry.get(event_type, []))


def fire(event_type: str, payload: dict) -> int:
    """Run every handler for event_type with its own copy of payload.

    Returns the number of handlers that completed without raising.
    """
    ok = 0
    for handler in handlers(event_type):
        try:
            handler(dict(payload))
            ok += 1
        except Exception as e:
            logger.error(f'{event_type}: handler {_name(handler)} failed: {e}', exc_info=True)
    return ok


def clear(event_type: str = None):
    """Drop handlers for one event, or all of them. Tests call this in setup."""
    with _lock:
        if event_type:
            _registry.pop(event_type, None)
        else:
            _registry.clear()
