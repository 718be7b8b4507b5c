"""Remote publish synchronizer components (session, response helpers, publisher)."""

from .publisher import (  # noqa: F401
    RemotePublishSynchronizer,
    SyncResult,
    SyncState,
    SyncTracker,
)
from .session import create_default_session, get_default_session  # noqa: F401
