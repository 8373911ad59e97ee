# flake8: noqa: F401
#
# sacrud_init has to be imported first: the other modules use sacrud.DB and sacrud.log
#
from .sacrud_init import DB, log, SACRUD
from .errors import ResourceError, NotFoundError, DuplicateFieldError, ValidationError, GenericError, SideEffectFailure
from .cache import CacheStore, fingerprint, MISS
from .filters import FilterQuery, build_filter
from .events import ChangeEvent, EventKind, NotificationEmitter
from .base import ResourceBase
from .accessor import CollectionAccessor
from .schemas import ResourceSchema, ResourceFields
from .serializer import Serializer, RelationPopulator
from .registry import ResourceRegistry
from .actions import ResourceActions
from .mail import Mailer
from .users import User, UserActions
from .posts import Post, PostActions
from .resources import create_resources
from .query import QuerySurface
from .api import SACRUDAPI
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "SACRUD",
    "SACRUDAPI",
    "DB",
    # db:
    "ResourceBase",
    "CollectionAccessor",
    # pipeline:
    "ResourceActions",
    "ResourceRegistry",
    "CacheStore",
    "fingerprint",
    "MISS",
    "FilterQuery",
    "build_filter",
    "ResourceSchema",
    "ResourceFields",
    "Serializer",
    "RelationPopulator",
    "ChangeEvent",
    "EventKind",
    "NotificationEmitter",
    "QuerySurface",
    "Mailer",
    # resources:
    "User",
    "UserActions",
    "Post",
    "PostActions",
    "create_resources",
    # Errors:
    "ResourceError",
    "NotFoundError",
    "DuplicateFieldError",
    "ValidationError",
    "GenericError",
    "SideEffectFailure",
)
