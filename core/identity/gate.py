"""
Ringside Identity - Actor Identity Gate
=======================================
No mutating action reaches the override store without a named actor.

When the actor is missing the gate does not run the action. It hands
the attempt, captured with its exact arguments as a one-shot
PendingAction, to the IdentityPrompt. Once a name is submitted the
prompt saves it to the shared ActorCell first and then replays the
pending action exactly once; the replay re-enters the gate and passes.

The prompt holds at most one pending action. Opening it again
cancels the earlier attempt, so a double trigger never replays twice.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from core.commands.outcomes import OperationResult
from core.context.actor_context import ActorCell
from core.identity.requirements import ACTOR_REQUIRED_MESSAGE, EMPTY_NAME_MESSAGE
from core.policies.errors import ErrorCode


logger = logging.getLogger("ringside.identity")


class PendingAction:
    """A guarded action and its original arguments, runnable once."""

    def __init__(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._fn = fn
        self._args = args
        self._kwargs = kwargs
        self._spent = False

    @property
    def spent(self) -> bool:
        return self._spent

    def cancel(self) -> None:
        self._spent = True

    def __call__(self) -> Any:
        if self._spent:
            raise RuntimeError("PendingAction already replayed or cancelled.")
        self._spent = True
        return self._fn(*self._args, **self._kwargs)

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        return f"PendingAction({name}, args={self._args!r}, spent={self._spent})"


class IdentityPrompt:
    """
    Identity-capture step between a blocked action and its replay.

    The presentation layer renders the prompt while `is_open` is true and
    calls submit() or dismiss().
    """

    def __init__(self, actor: ActorCell) -> None:
        self._actor = actor
        self._pending: Optional[PendingAction] = None

    @property
    def is_open(self) -> bool:
        return self._pending is not None

    @property
    def current_name(self) -> str:
        return self._actor.get()

    def open(self, pending: PendingAction) -> None:
        if self._pending is not None:
            logger.info(f"Identity prompt reopened, dropping {self._pending!r}")
            self._pending.cancel()
        self._pending = pending

    def dismiss(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None

    async def submit(self, name: str) -> Any:
        """
        Save `name` and replay the pending action once.

        Returns the replayed action's result, or None when nothing was
        pending. An empty name keeps the prompt open.
        """
        if not isinstance(name, str) or not name.strip():
            return OperationResult.failed(EMPTY_NAME_MESSAGE, ErrorCode.ACTOR_REQUIRED)

        self._actor.set(name)
        pending, self._pending = self._pending, None
        if pending is None or pending.spent:
            return None

        logger.info(f"Replaying {pending!r} as '{self._actor.get()}'")
        result = pending()
        if inspect.isawaitable(result):
            result = await result
        return result


class ActorIdentityGate:
    def __init__(self, actor: ActorCell, prompt: Optional[IdentityPrompt] = None) -> None:
        self._actor = actor
        self._prompt = prompt if prompt is not None else IdentityPrompt(actor)

    @property
    def actor(self) -> ActorCell:
        return self._actor

    @property
    def prompt(self) -> IdentityPrompt:
        return self._prompt

    def require_actor(self, on_missing: Callable[[], None]) -> bool:
        """True if an actor is known; otherwise call on_missing and return False."""
        if self._actor.get():
            return True
        on_missing()
        return False

    async def guard(self, action: Callable[..., Any], *args: Any, **kwargs: Any) -> OperationResult:
        """
        Run `await action(*args, actor=<name>, **kwargs)` once a name is known.

        Without a name, the prompt is opened with a continuation that
        calls guard() again with the same arguments, and a failure
        result is returned.
        """
        pending = PendingAction(self.guard, action, *args, **kwargs)
        if not self.require_actor(lambda: self._prompt.open(pending)):
            return OperationResult.failed(ACTOR_REQUIRED_MESSAGE, ErrorCode.ACTOR_REQUIRED)
        return await action(*args, actor=self._actor.get(), **kwargs)
