"""Process-wide extension points around form submission.

Submit handlers belong to a single form (``Form.on_submit``). Hooks apply to
every form: filters rewrite a value as it passes through, actions observe.

    from formwork.lib.hooks import FORM_LOAD_POST, filter

    @filter(FORM_LOAD_POST)
    def strip_whitespace(post, form):
        return {k: v.strip() if isinstance(v, str) else v for k, v in post.items()}
"""

import asyncio
import bisect
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, TypeVar

T = TypeVar("T")
Kind = Literal["action", "filter"]

# filter(post: dict, form) -> dict, before values are cast onto the model
FORM_LOAD_POST = "form_load_post"
# action(form, ctx), after the post loaded cleanly
FORM_SUBMITTED = "form_submitted"
# action(form, model), after the default save
FORM_SAVED = "form_saved"


@dataclass(order=True)
class HookHandler:
    priority: int
    callback: Callable = field(compare=False)

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        result = self.callback(*args, **kwargs)
        return await result if asyncio.iscoroutine(result) else result


class HookRegistry:
    """Callbacks keyed by kind and hook name, run in ascending priority."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[Kind, str], list[HookHandler]] = {}

    def _add(self, kind: Kind, hook_name: str, callback: Callable, priority: int) -> None:
        bisect.insort(self._handlers.setdefault((kind, hook_name), []), HookHandler(priority, callback))

    def _remove(self, kind: Kind, hook_name: str, callback: Callable) -> bool:
        handlers = self._handlers.get((kind, hook_name), [])
        for handler in handlers:
            if handler.callback is callback:
                handlers.remove(handler)
                return True
        return False

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add("action", hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add("filter", hook_name, callback, priority)

    def remove_action(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        return self._remove("action", hook_name, callback)

    def remove_filter(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        return self._remove("filter", hook_name, callback)

    def has_action(self, hook_name: str) -> bool:
        return bool(self._handlers.get(("action", hook_name)))

    def has_filter(self, hook_name: str) -> bool:
        return bool(self._handlers.get(("filter", hook_name)))

    async def do_action(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        for handler in list(self._handlers.get(("action", hook_name), [])):
            await handler(*args, **kwargs)

    async def apply_filters(self, hook_name: str, value: T, *args: Any, **kwargs: Any) -> T:
        for handler in list(self._handlers.get(("filter", hook_name), [])):
            value = await handler(value, *args, **kwargs)
        return value

    def snapshot(self) -> dict[tuple[Kind, str], list[HookHandler]]:
        return {key: list(handlers) for key, handlers in self._handlers.items()}

    def restore(self, snapshot: dict[tuple[Kind, str], list[HookHandler]]) -> None:
        self._handlers = {key: list(handlers) for key, handlers in snapshot.items()}

    def clear(self) -> None:
        self._handlers.clear()


hooks = HookRegistry()


def action(hook_name: str, priority: int = 10) -> Callable[[Callable], Callable]:
    def decorator(func: Callable) -> Callable:
        hooks.add_action(hook_name, func, priority)
        return func

    return decorator


def filter(hook_name: str, priority: int = 10) -> Callable[[Callable], Callable]:
    def decorator(func: Callable) -> Callable:
        hooks.add_filter(hook_name, func, priority)
        return func

    return decorator
