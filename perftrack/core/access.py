"""
Role capabilities and row visibility.

Every read path asks `visible_scope` once for the acting user and applies the
resulting predicate; no page inspects roles on its own.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Optional

from .schema import Actor, Role
from .store import Query


class Capability(str, Enum):
    VIEW_ALL = "view_all"
    VIEW_TEAM = "view_team"
    MANAGE_USERS = "manage_users"
    MANAGE_TEAMS = "manage_teams"
    SET_GOALS = "set_goals"


CAPABILITIES = {
    Role.ADMIN: frozenset({
        Capability.VIEW_ALL,
        Capability.VIEW_TEAM,
        Capability.MANAGE_USERS,
        Capability.MANAGE_TEAMS,
        Capability.SET_GOALS,
    }),
    Role.MANAGER: frozenset({Capability.VIEW_TEAM, Capability.SET_GOALS}),
    Role.RECRUITER: frozenset(),
}


def capabilities_for(actor: Optional[Actor]) -> FrozenSet[Capability]:
    if actor is None or not actor.is_active:
        return frozenset()
    return CAPABILITIES[actor.role]


def has_capability(actor: Optional[Actor], capability: Capability) -> bool:
    return capability in capabilities_for(actor)


class ScopeKind(str, Enum):
    ALL = "all"
    TEAM = "team"
    AUTHOR = "author"
    NONE = "none"


def _field(row: Any, name: str) -> Any:
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


@dataclass(frozen=True)
class RowPredicate:
    """Visibility predicate usable on in-memory rows and on store queries."""
    kind: ScopeKind
    value: Optional[str] = None
    team_field: str = "team_id"
    author_field: str = "user_id"

    def __call__(self, row: Any) -> bool:
        if self.kind == ScopeKind.ALL:
            return True
        if self.kind == ScopeKind.TEAM:
            return _field(row, self.team_field) == self.value
        if self.kind == ScopeKind.AUTHOR:
            return _field(row, self.author_field) == self.value
        return False

    def apply(self, query: Query) -> Query:
        """Narrow a store query to the visible rows."""
        if self.kind == ScopeKind.ALL:
            return query
        if self.kind == ScopeKind.TEAM:
            return query.eq(self.team_field, self.value)
        if self.kind == ScopeKind.AUTHOR:
            return query.eq(self.author_field, self.value)
        return query.none()

    @property
    def is_empty(self) -> bool:
        return self.kind == ScopeKind.NONE


def visible_scope(actor: Optional[Actor], team_field: str = "team_id", author_field: str = "user_id") -> RowPredicate:
    """
    Derive the row-visibility predicate for an actor.

    Admins see everything, managers see their team, recruiters see their own
    rows. A manager without a team, or a missing or inactive actor, sees
    nothing: the result is an empty set, not an error.
    """
    caps = capabilities_for(actor)
    if actor is None or not actor.is_active:
        kind, value = ScopeKind.NONE, None
    elif Capability.VIEW_ALL in caps:
        kind, value = ScopeKind.ALL, None
    elif Capability.VIEW_TEAM in caps:
        if actor.team_id:
            kind, value = ScopeKind.TEAM, actor.team_id
        else:
            kind, value = ScopeKind.NONE, None
    else:
        kind, value = ScopeKind.AUTHOR, actor.id
    return RowPredicate(kind=kind, value=value, team_field=team_field, author_field=author_field)


def can_see_team(actor: Optional[Actor], team_id: Optional[str]) -> bool:
    """Whether a team-level view of `team_id` is visible to the actor."""
    if has_capability(actor, Capability.VIEW_ALL):
        return True
    return bool(team_id) and actor is not None and actor.is_active and actor.team_id == team_id


def can_set_goal(actor: Optional[Actor], team_id: Optional[str], goal_user: Optional[Actor] = None) -> bool:
    """
    Admins set any goal. Managers set goals for their own team or for members
    of it; company-wide goals (no team, no user) are admin only.
    """
    if not has_capability(actor, Capability.SET_GOALS):
        return False
    if has_capability(actor, Capability.VIEW_ALL):
        return True
    if not actor.team_id or (team_id is None and goal_user is None):
        return False
    if team_id is not None and team_id != actor.team_id:
        return False
    if goal_user is not None and goal_user.team_id != actor.team_id:
        return False
    return True
