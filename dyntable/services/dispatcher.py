from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple, Union

from dyntable.core.accessor import Row, row_identity
from dyntable.core.exceptions import ActionError, AuthorizationError, BulkPartialFailure
from dyntable.core.permissions import Role, is_authorized
from dyntable.core.schema import ActionDef, TableConfig
from dyntable.services.audit import AuditEvent, AuditSink, emit, now_iso

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[ActionDef, Optional[Row], Sequence[Row]], Union[bool, Awaitable[bool]]]
RefreshCallback = Callable[[], Awaitable[None]]

# Outcome reasons
UNKNOWN_ACTION = "unknown_action"
UNKNOWN_ROW = "unknown_row"
UNAUTHORIZED = "unauthorized"
NOT_VISIBLE = "not_visible"
DISABLED = "disabled"
NO_SELECTION = "no_selection"
DECLINED = "declined"
FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    ok: bool
    reason: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls) -> Outcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str, error: Optional[BaseException] = None) -> Outcome:
        return cls(ok=False, reason=reason, error=error)

    @property
    def message(self) -> str:
        if self.ok:
            return "Action completed"
        if self.error is not None:
            return str(self.error)
        return self.reason.replace("_", " ").capitalize() if self.reason else "Action failed"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def _call(handler: Callable[..., Any], *args: Any) -> Any:
    return await _maybe_await(handler(*args))


class ActionDispatcher:
    """
    Runs row and bulk actions as explicit, separately testable stages:

        authorize -> confirm (destructive only) -> execute -> refresh signal

    The dispatcher holds no per-call state, so concurrent dispatches of
    different actions are independent. It never edits rows; a successful
    action only asks the data source to refresh.
    """

    def __init__(
        self,
        config: TableConfig,
        role: Role,
        *,
        confirm: Optional[ConfirmCallback] = None,
        refresh: Optional[RefreshCallback] = None,
        audit_sink: Optional[AuditSink] = None,
    ) -> None:
        self.config = config
        self.role = role
        self._confirm_cb = confirm
        self._refresh_cb = refresh
        self._audit_sink = audit_sink

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def authorize(self, action: ActionDef) -> Optional[AuthorizationError]:
        if is_authorized(self.config.permissions, action.capability, self.role):
            return None
        return AuthorizationError(
            f"Role {self.role!r} may not '{action.capability.value}' (action '{action.id}')"
        )

    async def confirm(
        self,
        action: ActionDef,
        row: Optional[Row],
        selected_rows: Sequence[Row],
        confirm: Optional[ConfirmCallback] = None,
    ) -> bool:
        """Destructive actions need an explicit yes. No confirm callback means no."""
        if not action.is_destructive:
            return True
        callback = confirm or self._confirm_cb
        if callback is None:
            return False
        try:
            return bool(await _maybe_await(callback(action, row, selected_rows)))
        except Exception:
            # A broken confirm prompt counts as a "no"
            logger.exception("Confirm callback failed", extra={"action_id": action.id, "table_id": self.config.id})
            return False

    async def execute(self, action: ActionDef, row: Optional[Row], selected_rows: Optional[Sequence[Row]]) -> None:
        """
        Raises:
            BulkPartialFailure: a per-row bulk action had at least one failing sub-operation
            ActionError: the handler raised
        """
        if selected_rows is not None and action.per_row:
            results = await asyncio.gather(
                *(_call(action.on_click, r) for r in selected_rows),
                return_exceptions=True,
            )
            failures = [r for r in results if isinstance(r, BaseException)]
            if failures:
                raise BulkPartialFailure(action.id, failures, attempted=len(selected_rows))
            return

        try:
            if selected_rows is not None:
                await _call(action.on_click, None, list(selected_rows))
            else:
                await _call(action.on_click, row)
        except Exception as exc:
            raise ActionError(f"Action '{action.id}' failed: {exc}") from exc

    async def signal_refresh(self) -> None:
        if self._refresh_cb is None:
            return
        try:
            await self._refresh_cb()
        except Exception:
            logger.exception("Refresh after action failed", extra={"table_id": self.config.id})

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def dispatch(
        self,
        action: ActionDef,
        row: Optional[Row] = None,
        selected_rows: Optional[Sequence[Row]] = None,
        *,
        confirm: Optional[ConfirmCallback] = None,
    ) -> Outcome:
        """
        Run one action. Row-level when `selected_rows` is None, bulk otherwise.

        Never raises for authorization, predicate, confirmation or handler failures;
        those come back as a failed Outcome.

        :param confirm: overrides the dispatcher-wide confirm callback for this call
        """
        is_bulk = selected_rows is not None
        row_ids: Tuple[Any, ...] = (
            tuple(row_identity(r) for r in selected_rows) if is_bulk
            else ((row_identity(row),) if row is not None else ())
        )
        self._audit(action, row_ids, "attempted")

        auth_error = self.authorize(action)
        if auth_error is not None:
            logger.info("Action rejected", extra={"action_id": action.id, "role": self.role})
            self._audit(action, row_ids, "rejected", UNAUTHORIZED)
            return Outcome.failure(UNAUTHORIZED, auth_error)

        if is_bulk and not selected_rows:
            self._audit(action, row_ids, "rejected", NO_SELECTION)
            return Outcome.failure(NO_SELECTION)

        try:
            visible = action.is_visible(row, selected_rows)
            disabled = visible and action.is_disabled(row, selected_rows)
        except Exception as exc:
            logger.warning(
                "Action predicate failed",
                extra={"action_id": action.id, "table_id": self.config.id, "error": str(exc)},
            )
            self._audit(action, row_ids, "failed", FAILED)
            return Outcome.failure(FAILED, ActionError(f"Action '{action.id}' predicate failed: {exc}"))

        if not visible:
            self._audit(action, row_ids, "rejected", NOT_VISIBLE)
            return Outcome.failure(NOT_VISIBLE)

        if disabled:
            self._audit(action, row_ids, "rejected", DISABLED)
            return Outcome.failure(DISABLED)

        if not await self.confirm(action, row, selected_rows or (), confirm):
            self._audit(action, row_ids, "declined", DECLINED)
            return Outcome.failure(DECLINED)
        if action.is_destructive:
            self._audit(action, row_ids, "confirmed")

        try:
            await self.execute(action, row, selected_rows)
        except ActionError as exc:
            logger.warning(
                "Action failed",
                extra={"action_id": action.id, "table_id": self.config.id, "error": str(exc)},
            )
            self._audit(action, row_ids, "failed", FAILED)
            return Outcome.failure(FAILED, exc)

        self._audit(action, row_ids, "succeeded")
        await self.signal_refresh()
        return Outcome.success()

    def _audit(self, action: ActionDef, row_ids: Tuple[Any, ...], outcome: str, reason: Optional[str] = None) -> None:
        if not self.config.audit.active:
            return
        emit(
            self._audit_sink,
            AuditEvent(
                action_id=action.id,
                row_ids=row_ids,
                outcome=outcome,
                timestamp=now_iso(),
                role=self.role,
                table_id=self.config.id,
                reason=reason,
            ),
        )
