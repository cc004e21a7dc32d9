from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


class DynTableError(Exception):
    """Base exception for all dyntable errors"""
    pass


@dataclass(frozen=True)
class ConfigIssue:
    code: str
    message: str


class ConfigError(DynTableError):
    """
    Malformed TableConfig: missing or duplicate ids, unsupported types,
    inconsistent defaults. Carries every issue found, not just the first.
    """

    def __init__(self, issues: Sequence[ConfigIssue]):
        self.issues: List[ConfigIssue] = list(issues)
        super().__init__("\n".join(f"{i.code}: {i.message}" for i in self.issues))


class AccessorError(DynTableError):
    """An accessor raised for a given row. Recovered locally as 'no value'."""
    pass


class AuthorizationError(DynTableError):
    """Caller's role lacks the capability required by an action"""
    pass


class ActionError(DynTableError):
    """An action's own handler raised"""
    pass


class BulkPartialFailure(ActionError):
    """
    One or more sub-operations of a bulk action failed.

    Sub-operations that already succeeded are not rolled back. `failures` holds
    the collaborator exceptions in selection order.
    """

    def __init__(self, action_id: str, failures: Sequence[BaseException], attempted: int):
        self.action_id = action_id
        self.failures = list(failures)
        self.attempted = attempted
        super().__init__(
            f"Bulk action '{action_id}' failed for {len(self.failures)} of {attempted} rows"
        )


class ExportError(DynTableError):
    """Requested export format is disabled or has no serializer"""
    pass
