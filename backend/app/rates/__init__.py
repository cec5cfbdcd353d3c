"""Rate refresh subsystem.

Public API:
    RateQuote           - Immutable price quote dataclass
    RateService         - Polling engine with subscriber fan-out and cache fallback
    Subscription        - Async-iterable channel of quotes from the service
    LifecycleState      - idle / running / stopping
    RateFetcher, SnapshotStore, EventRecorder - Collaborator interfaces
    RateFetchError      - Raised by fetchers on any failure
    AnalyticsService    - Thread-safe in-memory event log
    FileSnapshotStore, MemorySnapshotStore - Snapshot store implementations
    create_rate_service - Factory that wires the service from the environment
    create_rate_router  - FastAPI router factory for the SSE and control endpoints
"""

from .analytics import AnalyticsService
from .factory import create_rate_service
from .interface import EventRecorder, RateFetcher, RateFetchError, SnapshotStore
from .models import AnalyticsEvent, RateQuote
from .service import LifecycleState, RateService
from .store import FileSnapshotStore, MemorySnapshotStore
from .stream import create_rate_router
from .subscription import Subscription

__all__ = [
    "AnalyticsEvent",
    "AnalyticsService",
    "EventRecorder",
    "FileSnapshotStore",
    "LifecycleState",
    "MemorySnapshotStore",
    "RateFetchError",
    "RateFetcher",
    "RateQuote",
    "RateService",
    "SnapshotStore",
    "Subscription",
    "create_rate_router",
    "create_rate_service",
]
