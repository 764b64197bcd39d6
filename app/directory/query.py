"""Search, filtering and incremental pagination over the profile collection."""

from __future__ import annotations

import string
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence

from app.directory.models import Profile

INITIAL_PAGE_SIZE = 6
PAGE_INCREMENT = 3
ALPHABET: List[str] = list(string.ascii_uppercase)


@dataclass(slots=True, frozen=True)
class DirectoryQuery:
    """Search term plus discrete filters; an empty value disables that filter."""

    search: str = ""
    department: str = ""
    role: str = ""
    alpha: str = ""

    def is_empty(self) -> bool:
        return not (self.search.strip() or self.department or self.role or self.alpha)


def matches(profile: Profile, query: DirectoryQuery) -> bool:
    term = query.search.strip().lower()
    if term and not (
        term in profile.name.lower()
        or term in profile.email.lower()
        or any(term in skill.lower() for skill in profile.skills)
    ):
        return False
    if query.department and profile.department != query.department:
        return False
    if query.role and profile.role != query.role:
        return False
    if query.alpha and profile.name[:1].upper() != query.alpha[:1].upper():
        return False
    return True


def filter_profiles(profiles: Iterable[Profile], query: DirectoryQuery) -> List[Profile]:
    """Return the profiles satisfying every active filter, in input order."""
    return [profile for profile in profiles if matches(profile, query)]


def visible_count(
    total: int,
    load_more: int = 0,
    initial: int = INITIAL_PAGE_SIZE,
    increment: int = PAGE_INCREMENT,
) -> int:
    """How many of ``total`` results are shown after ``load_more`` requests."""
    return min(total, initial + increment * max(load_more, 0))


@dataclass(slots=True)
class DirectoryPage:
    profiles: List[Profile]
    total: int

    @property
    def shown(self) -> int:
        return len(self.profiles)

    @property
    def has_more(self) -> bool:
        return self.shown < self.total


def paginate(
    results: Sequence[Profile],
    load_more: int = 0,
    initial: int = INITIAL_PAGE_SIZE,
    increment: int = PAGE_INCREMENT,
) -> DirectoryPage:
    count = visible_count(len(results), load_more, initial, increment)
    return DirectoryPage(profiles=list(results[:count]), total=len(results))


@dataclass
class DirectoryView:
    """
    Browsing state over a full profile collection.

    Changing the search term or any filter goes back to the first page; each
    ``load_more`` reveals another increment until the results run out.
    """

    profiles: List[Profile] = field(default_factory=list)
    query: DirectoryQuery = field(default_factory=DirectoryQuery)
    initial: int = INITIAL_PAGE_SIZE
    increment: int = PAGE_INCREMENT
    _count: int = field(default=0, init=False)
    _results: List[Profile] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self._refresh()

    def _refresh(self) -> None:
        self._results = filter_profiles(self.profiles, self.query)
        self._count = min(self.initial, len(self._results))

    def replace_profiles(self, profiles: Iterable[Profile]) -> None:
        self.profiles = list(profiles)
        self._refresh()

    def set_search(self, search: str) -> None:
        self.query = replace(self.query, search=search)
        self._refresh()

    def set_filters(
        self,
        department: Optional[str] = None,
        role: Optional[str] = None,
        alpha: Optional[str] = None,
    ) -> None:
        changes = {
            key: value
            for key, value in (("department", department), ("role", role), ("alpha", alpha))
            if value is not None
        }
        self.query = replace(self.query, **changes)
        self._refresh()

    def clear_filters(self) -> None:
        self.query = replace(self.query, department="", role="", alpha="")
        self._refresh()

    def load_more(self) -> List[Profile]:
        self._count = min(self._count + self.increment, len(self._results))
        return self.visible

    @property
    def results(self) -> List[Profile]:
        return list(self._results)

    @property
    def visible(self) -> List[Profile]:
        return self._results[: self._count]

    @property
    def has_more(self) -> bool:
        return self._count < len(self._results)
