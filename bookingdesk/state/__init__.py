"""Client state layer for the booking desk."""

from .config import ClientSettings, ConfigurationError, load_settings
from .container import StateContainer, create_container
from .http import ApiClient, ApiHttpError
from .models import AuthState, Branch, DashboardSection, RootState, WishlistStatus
from .outcomes import Failed, Pending, Succeeded, extract_error_message
from .state import build_initial_state
from .storage import FileStateStorage, InMemoryStateStorage, PostgresStateStorage, StateStorage, create_storage

__all__ = [
    "ApiClient",
    "ApiHttpError",
    "AuthState",
    "Branch",
    "build_initial_state",
    "ClientSettings",
    "ConfigurationError",
    "create_container",
    "create_storage",
    "DashboardSection",
    "extract_error_message",
    "Failed",
    "FileStateStorage",
    "InMemoryStateStorage",
    "load_settings",
    "Pending",
    "PostgresStateStorage",
    "RootState",
    "StateContainer",
    "StateStorage",
    "Succeeded",
    "WishlistStatus",
]
