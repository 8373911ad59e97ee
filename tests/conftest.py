from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional

import pytest
from flask import Flask

from sacrud import DB, SACRUD, CacheStore, ChangeEvent, NotificationEmitter, ResourceRegistry, create_resources


class RecordingMailer:
    """Mailer test double: records the deliveries, fails on demand."""

    def __init__(self) -> None:
        self.sent: List[tuple] = []
        self.fail_render = False
        self.fail_send = False

    def render(self, template_ref: str, variables: dict) -> str:
        if self.fail_render:
            raise RuntimeError(f"can't render {template_ref}")
        return f'<a href="{variables["reset_link"]}">{variables["name"]}</a>'

    def send(self, recipient: str, subject: str, html: str) -> None:
        if self.fail_send:
            raise OSError("connection refused")
        self.sent.append((recipient, subject, html))


class EventRecorder:
    def __init__(self) -> None:
        self.events: List[ChangeEvent] = []

    def __call__(self, event: ChangeEvent) -> None:
        self.events.append(event)

    def kinds(self, resource: Optional[str] = None) -> List[str]:
        return [event.kind.value for event in self.events if resource is None or event.resource == resource]

    def changes(self, resource: Optional[str] = None) -> List[str]:
        """the kinds of the mutation events, without the info/error events of the side effects"""
        return [kind for kind in self.kinds(resource) if kind in ("created", "updated", "removed")]

    def last(self) -> ChangeEvent:
        return self.events[-1]


@pytest.fixture
def app() -> Iterator[Flask]:
    app = Flask("sacrud_test")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", TESTING=True, APP_URL="http://test.local/")
    SACRUD(app)
    with app.app_context():
        DB.create_all()
        yield app
        DB.session.remove()
        DB.drop_all()


@pytest.fixture
def cache() -> CacheStore:
    return CacheStore()


@pytest.fixture
def emitter() -> NotificationEmitter:
    return NotificationEmitter()


@pytest.fixture
def recorder(emitter: NotificationEmitter) -> EventRecorder:
    recorder = EventRecorder()
    emitter.subscribe(recorder)
    return recorder


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    executor = ThreadPoolExecutor(max_workers=1)
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def registry(app: Flask, cache: CacheStore, emitter: NotificationEmitter, executor: ThreadPoolExecutor, mailer: RecordingMailer) -> ResourceRegistry:
    return create_resources(cache=cache, emitter=emitter, executor=executor, mailer=mailer)


@pytest.fixture
def users(registry: ResourceRegistry):
    return registry["users"]


@pytest.fixture
def posts(registry: ResourceRegistry):
    return registry["posts"]
