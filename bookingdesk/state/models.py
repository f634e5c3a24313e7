"""State shapes for every branch of the client state tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

Record = dict[str, Any]


class Branch(str, Enum):
    AUTH = "auth"
    USERS = "users"
    EMPLOYEES = "employees"
    PROPERTIES = "properties"
    PUBLIC_PROPERTIES = "publicProperties"
    BOOKINGS = "bookings"
    WISHLIST = "wishlist"
    DASHBOARD = "dashboard"


class WishlistStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DashboardSection(str, Enum):
    USERS = "users"
    PROPERTIES = "properties"
    PUBLIC_PROPERTIES = "publicProperties"
    BOOKINGS = "bookings"

    @property
    def field_name(self) -> str:
        return {
            DashboardSection.USERS: "users",
            DashboardSection.PROPERTIES: "properties",
            DashboardSection.PUBLIC_PROPERTIES: "public_properties",
            DashboardSection.BOOKINGS: "bookings",
        }[self]


@dataclass(frozen=True)
class EntityCollectionState:
    items: list[Record] = field(default_factory=list)
    loading: bool = False
    error: str | None = None
    request_epoch: int = 0


@dataclass(frozen=True)
class WishlistState:
    items: frozenset[str] = frozenset()
    status: WishlistStatus = WishlistStatus.IDLE
    error: str | None = None
    request_epoch: int = 0


@dataclass(frozen=True)
class DashboardData:
    users: list[Record] = field(default_factory=list)
    properties: list[Record] = field(default_factory=list)
    public_properties: list[Record] = field(default_factory=list)
    bookings: list[Record] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardState:
    data: DashboardData | None = None
    loading: bool = False
    error: str | None = None
    last_fetched: str | None = None
    request_epoch: int = 0


class AuthState(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: Record | None = None
    token: str | None = None
    is_authenticated: bool = False
    loading: bool = False
    profile_update_loading: bool = False
    error: str | None = None
    success: bool = False


class PersistedState(BaseModel):
    """The durable subset of the tree. Only fields declared here survive a reload."""

    model_config = ConfigDict(extra="ignore")

    auth: AuthState = AuthState()


@dataclass(frozen=True)
class RootState:
    auth: AuthState = field(default_factory=AuthState)
    users: EntityCollectionState = field(default_factory=EntityCollectionState)
    employees: EntityCollectionState = field(default_factory=EntityCollectionState)
    properties: EntityCollectionState = field(default_factory=EntityCollectionState)
    public_properties: EntityCollectionState = field(default_factory=EntityCollectionState)
    bookings: EntityCollectionState = field(default_factory=EntityCollectionState)
    wishlist: WishlistState = field(default_factory=WishlistState)
    dashboard: DashboardState = field(default_factory=DashboardState)

    def branch(self, branch: Branch) -> Any:
        return getattr(self, BRANCH_FIELDS[branch])


BRANCH_FIELDS: dict[Branch, str] = {
    Branch.AUTH: "auth",
    Branch.USERS: "users",
    Branch.EMPLOYEES: "employees",
    Branch.PROPERTIES: "properties",
    Branch.PUBLIC_PROPERTIES: "public_properties",
    Branch.BOOKINGS: "bookings",
    Branch.WISHLIST: "wishlist",
    Branch.DASHBOARD: "dashboard",
}

COLLECTION_BRANCHES = frozenset(
    {
        Branch.USERS,
        Branch.EMPLOYEES,
        Branch.PROPERTIES,
        Branch.PUBLIC_PROPERTIES,
        Branch.BOOKINGS,
    }
)
