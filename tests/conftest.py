import json
import os
import urllib.parse

from typing import Any, Callable, Dict, List, Optional, Tuple

# Tests run headless
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

import pytest  # pylint: disable=wrong-import-position

from PyQt6.QtCore import QCoreApplication  # pylint: disable=wrong-import-position

from destinyapi import (  # pylint: disable=wrong-import-position
    auth as m_auth,
    client as m_client,
    config as m_config,
    scheduler as m_scheduler,
)
from destinyapi.threads import transport as m_transport  # pylint: disable=C0413

API_KEY = 'api-key-for-bungie'
ACCESS_TOKEN = 'accesstoken-auth'

PATH_USER = 'User/GetBungieNetUser/'
PATH_SEARCH = 'Destiny/SearchDestinyPlayer/2/Eden/'
PATH_SUMMARY = 'Destiny/2/Account/123/Summary/'
PATH_VAULT = 'Destiny/2/MyAccount/Vault/'

PLAYED_OLD = '2015-05-20T10:00:00Z'
PLAYED_NEW = '2015-05-22T01:19:14Z'


def ok(response: Any, **extra: Any) -> Dict[str, Any]:
    """Successful API payload."""
    return {
        'ErrorCode': 1,
        'ThrottleSeconds': 0,
        'ErrorStatus': 'Success',
        'Message': 'Ok',
        'Response': response,
        **extra,
    }


def failure(code: int, message: str, **extra: Any) -> Dict[str, Any]:
    """Failed API payload."""
    return {
        'ErrorCode': code,
        'ThrottleSeconds': 0,
        'ErrorStatus': 'Failure',
        'Message': message,
        **extra,
    }


def summary(*characters: Tuple[str, str]) -> Dict[str, Any]:
    """Account summary payload for (id, dateLastPlayed) pairs."""
    return {
        'membershipId': '123',
        'characters': [
            {
                'characterBase': {
                    'characterId': character_id,
                    'dateLastPlayed': played,
                    'classHash': 671679327,
                }
            }
            for character_id, played in characters
        ],
    }


class FakeTransport(m_transport.Transport):
    """
    Transport answering from routes keyed by the path below the API base.
    Every route holds a list of responses, the last one repeats.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, List[m_transport.HTTPResponse]] = {}
        self.calls: List[m_transport.HTTPRequest] = []
        self.held: List[Tuple[m_transport.HTTPRequest, Callable]] = []
        self.hold = False
        self.closed = False

    def route(
        self,
        path: str,
        payload: Any = None,
        status: int = 200,
        text: Optional[str] = None,
        replace: bool = False,
    ) -> None:
        if text is None:
            text = json.dumps(payload)
        if replace:
            self.routes[path] = []
        self.routes.setdefault(path, []).append(m_transport.HTTPResponse(status, text))

    def response_for(self, req: m_transport.HTTPRequest) -> m_transport.HTTPResponse:
        path = urllib.parse.urlsplit(req.url).path.removeprefix('/Platform/')
        responses = self.routes.get(path)
        if not responses:
            return m_transport.HTTPResponse(404, 'Not Found', 'Not Found')
        return responses.pop(0) if len(responses) > 1 else responses[0]

    def request(self, req: m_transport.HTTPRequest, fn: Callable) -> None:
        self.calls.append(req)
        if self.hold:
            self.held.append((req, fn))
            return
        fn(self.response_for(req))

    def flush(self) -> None:
        """Answers every held request."""
        held, self.held = self.held, []
        for req, fn in held:
            fn(self.response_for(req))

    def drain(self) -> None:
        """Answers held requests until nothing is held anymore."""
        while self.held:
            self.flush()

    def count(self, path: str) -> int:
        return sum(
            1
            for req in self.calls
            if urllib.parse.urlsplit(req.url).path.endswith('/' + path)
        )

    def close(self) -> None:
        self.closed = True


class ManualScheduler(m_scheduler.Scheduler):
    """Scheduler whose time only moves when told to."""

    def __init__(self) -> None:
        self.now = 0
        self.timers: Dict[int, Tuple[int, Callable, Optional[int]]] = {}
        self._next = 0

    def _add(self, fn: Callable, delay: int, period: Optional[int]) -> int:
        self._next += 1
        self.timers[self._next] = (self.now + delay, fn, period)
        return self._next

    def set_timeout(self, fn: Callable, delay: int) -> int:
        return self._add(fn, delay, None)

    def set_interval(self, fn: Callable, period: int) -> int:
        return self._add(fn, period, period)

    def clear(self, handle: int) -> None:
        self.timers.pop(handle, None)

    def advance(self, ms: int) -> None:
        """Moves time forward, firing everything that becomes due in order."""
        target = self.now + ms
        while True:
            due = [
                (when, handle)
                for handle, (when, _, _) in self.timers.items()
                if when <= target
            ]
            if not due:
                break
            when, handle = min(due)
            _, fn, period = self.timers[handle]
            self.now = when
            if period is None:
                del self.timers[handle]
            else:
                self.timers[handle] = (when + period, fn, period)
            fn()
        self.now = target


class Recorder:
    """Callback that remembers every (error, data) it was called with."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, Any]] = []

    def __call__(self, err: Any, data: Any) -> None:
        self.calls.append((err, data))

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def err(self) -> Any:
        return self.calls[-1][0]

    @property
    def data(self) -> Any:
        return self.calls[-1][1]


@pytest.fixture(name='qapp_cls', scope='session')
def fixture_qapp_cls():
    return QCoreApplication


@pytest.fixture(name='transport')
def fixture_transport() -> FakeTransport:
    transport = FakeTransport()
    transport.route(PATH_USER, ok({'psnId': 'Eden', 'user': {'displayName': 'Eden'}}))
    transport.route(
        PATH_SEARCH,
        ok([{'membershipId': '123', 'displayName': 'Eden', 'membershipType': 2}]),
    )
    transport.route(
        PATH_SUMMARY, ok({'data': summary(('A', PLAYED_OLD), ('B', PLAYED_NEW))})
    )
    return transport


@pytest.fixture(name='scheduler')
def fixture_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture(name='config')
def fixture_config() -> m_config.Config:
    return m_config.Config(key=API_KEY)


@pytest.fixture(name='auth')
def fixture_auth() -> m_auth.StaticAuth:
    return m_auth.StaticAuth(API_KEY, ACCESS_TOKEN)


@pytest.fixture(name='destiny')
def fixture_destiny(
    config: m_config.Config,
    auth: m_auth.StaticAuth,
    transport: FakeTransport,
    scheduler: ManualScheduler,
):
    destiny = m_client.Destiny(config, auth, transport, scheduler)
    yield destiny
    destiny.destroy()
