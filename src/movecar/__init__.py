"""movecar - Async coordination core for QR-code "please move your car" requests."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("movecar")
except PackageNotFoundError:
    __version__ = "0+local"
from movecar.config import EnvSettingResolver, MappingSettingResolver, MoveCarConfig, SettingResolver
from movecar.exceptions import (
    BackingStoreUnavailableError,
    BadRequestError,
    ChannelDispatchError,
    MoveCarConfigError,
    MoveCarError,
    RateLimitedError,
)
from movecar.geo import MapLinks, build_map_links, out_of_china, wgs84_to_gcj02
from movecar.models import (
    Coordinates,
    Location,
    NotificationEvent,
    SessionRecord,
    SessionSnapshot,
    SessionStatus,
)
from movecar.notify import BarkChannel, ChannelOutcome, NotificationDispatcher, PushPlusChannel
from movecar.rate_limit import RateLimiter
from movecar.service import MoveCarService, NotifyResult
from movecar.session import SessionStateMachine
from movecar.store import ExpiringStore, MemoryStore, RedisStore

__all__ = [
    "__version__",
    "BackingStoreUnavailableError",
    "BadRequestError",
    "BarkChannel",
    "ChannelDispatchError",
    "ChannelOutcome",
    "Coordinates",
    "EnvSettingResolver",
    "ExpiringStore",
    "Location",
    "MapLinks",
    "MappingSettingResolver",
    "MemoryStore",
    "MoveCarConfig",
    "MoveCarConfigError",
    "MoveCarError",
    "MoveCarService",
    "NotificationDispatcher",
    "NotificationEvent",
    "NotifyResult",
    "PushPlusChannel",
    "RateLimitedError",
    "RateLimiter",
    "RedisStore",
    "SessionRecord",
    "SessionSnapshot",
    "SessionStateMachine",
    "SessionStatus",
    "SettingResolver",
    "build_map_links",
    "out_of_china",
    "wgs84_to_gcj02",
]
