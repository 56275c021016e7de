"""
HTTP transport used by the client to reach the API.
"""

import abc
import dataclasses
import urllib.error
import urllib.request

from typing import Callable, Dict, Optional

from destinyapi import consts, log
from destinyapi.threads import thread

logger = log.get_logger(__name__)


@dataclasses.dataclass
class HTTPRequest:
    """A fully resolved request."""

    method: str
    url: str
    headers: Dict[str, str] = dataclasses.field(default_factory=dict)
    body: Optional[bytes | str] = None
    timeout: int = consts.DEFAULT_TIMEOUT  # ms


@dataclasses.dataclass
class HTTPResponse:
    """Status and raw body of a finished request, status 0 if none was received."""

    status: int
    text: str = ''
    reason: str = ''

    @property
    def ok(self) -> bool:
        """Returns whether the server answered with 200."""
        return self.status == 200


ResponseCallback = Callable[[HTTPResponse], None]


class Transport(abc.ABC):
    """Sends requests and calls back with the response."""

    @abc.abstractmethod
    def request(self, req: HTTPRequest, fn: ResponseCallback) -> None:
        """Sends req, fn receives the response (never raises)."""

    def close(self) -> None:
        """Releases the transport's resources."""


def fetch(req: HTTPRequest) -> HTTPResponse:
    """Performs a blocking request, failures are turned into responses."""
    data = req.body.encode('utf-8') if isinstance(req.body, str) else req.body
    request = urllib.request.Request(
        req.url, data=data, headers=req.headers, method=req.method
    )
    try:
        with urllib.request.urlopen(request, timeout=req.timeout / 1000) as response:
            encoding = response.info().get_param('charset', 'utf-8')
            return HTTPResponse(response.status, response.read().decode(encoding))
    except urllib.error.HTTPError as e:
        logger.error('HTTP Error %s %s %s', e.code, e.reason, req.url)
        return HTTPResponse(e.code, e.read().decode('utf-8', 'replace'), str(e.reason))
    except urllib.error.URLError as e:
        logger.error('URL Error %s %s', e.reason, req.url)
        return HTTPResponse(0, '', str(e.reason))
    except OSError as e:
        # Socket timeouts while reading the body
        logger.error('Request failed %s %s', e, req.url)
        return HTTPResponse(0, '', str(e) or type(e).__name__)


class HTTPThread(thread.RetrieveThread, Transport):
    """Transport that performs requests on a worker thread."""

    def request(self, req: HTTPRequest, fn: ResponseCallback) -> None:
        logger.debug('Queueing %s %s', req.method, req.url)
        self.insert([thread.Call(req, fn)])

    def service(self, request: HTTPRequest) -> HTTPResponse:
        return fetch(request)

    def close(self) -> None:
        self.kill_thread()
