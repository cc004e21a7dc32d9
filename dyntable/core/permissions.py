from __future__ import annotations

from typing import FrozenSet, Iterable, Mapping, Sequence, Tuple, Union

from .schema import ActionDef
from .types import Capability

Role = Union[str, Iterable[str], None]


def normalise_roles(role: Role) -> FrozenSet[str]:
    if role is None:
        return frozenset()
    if isinstance(role, str):
        return frozenset([role]) if role else frozenset()
    return frozenset(r for r in role if r)


def is_authorized(
    permissions: Mapping[Capability, FrozenSet[str]],
    capability: Capability,
    role: Role,
) -> bool:
    """
    A capability not mentioned in `permissions` is open to every caller.
    Otherwise at least one of the caller's roles must be listed for it.
    """
    if capability not in permissions:
        return True
    return bool(normalise_roles(role) & permissions[capability])


def permitted_actions(
    actions: Sequence[ActionDef],
    permissions: Mapping[Capability, FrozenSet[str]],
    role: Role,
) -> Tuple[ActionDef, ...]:
    return tuple(a for a in actions if is_authorized(permissions, a.capability, role))
