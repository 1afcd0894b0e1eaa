from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, List, Optional, Union

from admin_tables.core.exceptions import BulkActionCancelled, EmptySelectionError

logger = logging.getLogger(__name__)

Handler = Callable[[Hashable], Union[Awaitable[Any], Any]]
ConfirmCallback = Callable[[str], Union[Awaitable[bool], bool]]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class BulkAction:
    """
    One operation applied independently to every selected id.

    - handler: (entity_id) -> result, sync or async. Raising, or returning
      False, marks that id as failed
    - destructive: requires confirmation before dispatch
    - confirm_message: confirmation text, "{count}" is replaced by the number of ids
    - past_tense: verb used in the summary ("12 of 15 archived")
    """

    action_id: str
    label: str
    handler: Handler
    destructive: bool = False
    confirm_message: Optional[str] = None
    variant: str = "default"
    past_tense: str = "updated"

    def confirmation_text(self, count: int) -> Optional[str]:
        if self.confirm_message:
            return self.confirm_message.replace("{count}", str(count))
        if self.destructive:
            return f"{self.label} {count} selected items?"
        return None


@dataclass(frozen=True)
class BulkResult:
    action_id: str
    succeeded: List[Hashable] = field(default_factory=list)
    failed: List[Hashable] = field(default_factory=list)
    errors: Dict[Hashable, str] = field(default_factory=dict)
    past_tense: str = "updated"
    # Set by the table controller when the reload after dispatch failed
    reload_error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return f"{len(self.succeeded)} of {self.total} {self.past_tense}"


class BulkActionDispatcher:
    """
    Fans a bulk action out as one independent operation per id and joins on
    all of them. Best effort: a failing id never cancels or rolls back the
    others, and nothing is retried. Once dispatched, operations are not
    cancelled.
    """

    def __init__(self, confirm: Optional[ConfirmCallback] = None):
        self._confirm = confirm

    async def run(self, action: BulkAction, selected_ids: Iterable[Hashable]) -> BulkResult:
        ids = list(dict.fromkeys(selected_ids))
        if not ids:
            raise EmptySelectionError(f"Bulk action '{action.action_id}' needs at least one selected row")

        message = action.confirmation_text(len(ids))
        if message is not None:
            if self._confirm is None:
                raise BulkActionCancelled(f"Bulk action '{action.action_id}' requires confirmation")
            confirmed = await _resolve(self._confirm(message))
            if not confirmed:
                logger.info("Bulk action declined", extra={"action": action.action_id, "n_ids": len(ids)})
                raise BulkActionCancelled(f"Bulk action '{action.action_id}' was not confirmed")

        logger.info("Dispatching bulk action", extra={"action": action.action_id, "n_ids": len(ids)})
        outcomes = await asyncio.gather(
            *(self._run_one(action, entity_id) for entity_id in ids),
            return_exceptions=True,
        )

        succeeded: List[Hashable] = []
        failed: List[Hashable] = []
        errors: Dict[Hashable, str] = {}
        for entity_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                failed.append(entity_id)
                errors[entity_id] = str(outcome) or type(outcome).__name__
                logger.error(
                    "Bulk action %s failed for id %r: %s",
                    action.action_id,
                    entity_id,
                    errors[entity_id],
                )
            elif outcome is False:
                failed.append(entity_id)
                errors[entity_id] = "rejected"
                logger.error("Bulk action %s rejected for id %r", action.action_id, entity_id)
            else:
                succeeded.append(entity_id)

        result = BulkResult(
            action_id=action.action_id,
            succeeded=succeeded,
            failed=failed,
            errors=errors,
            past_tense=action.past_tense,
        )
        logger.info(
            "Bulk action finished: %s",
            result.summary(),
            extra={"action": action.action_id, "n_succeeded": len(succeeded), "n_failed": len(failed)},
        )
        return result

    @staticmethod
    async def _run_one(action: BulkAction, entity_id: Hashable) -> Any:
        return await _resolve(action.handler(entity_id))


# -------------------------------------------------------------------------
# Pre-configured actions
# -------------------------------------------------------------------------

def archive_action(handler: Handler) -> BulkAction:
    return BulkAction(
        action_id="archive",
        label="Archive",
        handler=handler,
        variant="warning",
        confirm_message="Archive {count} selected items? They can be restored later.",
        past_tense="archived",
    )


def delete_action(handler: Handler) -> BulkAction:
    return BulkAction(
        action_id="delete",
        label="Delete",
        handler=handler,
        destructive=True,
        variant="danger",
        confirm_message="Permanently delete {count} selected items? This cannot be undone.",
        past_tense="deleted",
    )


def status_update_action(label: str, status: str, handler: Handler) -> BulkAction:
    """Move every selected row to `status`; no confirmation."""
    return BulkAction(
        action_id=f"status-{status}",
        label=label,
        handler=handler,
        variant="default",
        past_tense=f"set to {status}",
    )
