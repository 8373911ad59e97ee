"""
Wiring of the bundled resources
"""
from typing import Optional
from .cache import CacheStore
from .events import NotificationEmitter
from .posts import PostActions
from .registry import ResourceRegistry
from .users import UserActions


def create_resources(cache: Optional[CacheStore] = None, emitter: Optional[NotificationEmitter] = None, executor=None, mailer=None) -> ResourceRegistry:
    """
    Create the users and posts resources sharing one cache and one emitter
    :return: ResourceRegistry holding the resources
    """
    registry = ResourceRegistry()
    cache = cache if cache is not None else CacheStore()
    emitter = emitter if emitter is not None else NotificationEmitter()
    UserActions(registry, cache=cache, emitter=emitter, executor=executor, mailer=mailer)
    PostActions(registry, cache=cache, emitter=emitter, executor=executor)
    return registry
