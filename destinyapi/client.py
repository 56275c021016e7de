"""
Client for the Bungie Destiny API.

Before any request can be made the client has to know who it is acting for.
On construction (and on every `refresh`) it runs a three phase bootstrap:

1. fetch the account behind the credentials (username and platform),
2. resolve the membership id of that username,
3. fetch the account summary and create the characters.

Requests issued in the meantime are deferred and replayed once the bootstrap
has finished. Identical requests that are in flight are only sent once, and
throttled requests are rescheduled after the delay the API asks for.
"""

import dataclasses
import functools
import json
import urllib.parse
from typing import Any, Dict, Optional, Sequence, Set

from PyQt6.QtCore import QObject, pyqtSignal

from destinyapi import (
    auth as m_auth,
    config as m_config,
    consts,
    errors,
    log,
    readiness,
    request as m_request,
    requestqueue,
    scheduler as m_scheduler,
    session as m_session,
    util,
)
from destinyapi.endpoints import character as m_character, user as m_user
from destinyapi.models import characters as m_characters, vault as m_vault
from destinyapi.threads import transport as m_transport

logger = log.get_logger(__name__)

BOOTSTRAP_REASON = 'Failed to retrieve account information from the Bungie API'

ReadyState = m_session.ReadyState

_SESSION_FIELDS = tuple(
    field.name for field in dataclasses.fields(m_session.SessionIdentity)
)


class Destiny(QObject):
    """
    Destiny API interactions.

    Signals:

    - refreshing:  the bootstrap started.
    - refreshed:   the bootstrap finished, with the error if it failed.
    - error:       the bootstrap failed, the session has been reset.
    - changed:     a session or config field changed (name, new, old).
    """

    refreshing = pyqtSignal()
    refreshed = pyqtSignal(object)
    error = pyqtSignal(object)
    changed = pyqtSignal(str, object, object)

    def __init__(
        self,
        config: Optional[m_config.Config] = None,
        auth: Optional[m_auth.AuthProvider] = None,
        transport: Optional[m_transport.Transport] = None,
        scheduler: Optional[m_scheduler.Scheduler] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.config = config if config is not None else m_config.Config()
        self.auth = auth if auth is not None else m_auth.StaticAuth(self.config.key)
        self.transport = (
            transport if transport is not None else m_transport.HTTPThread()
        )
        self.scheduler = (
            scheduler if scheduler is not None else m_scheduler.QtScheduler(self)
        )

        self.session = m_session.SessionIdentity(
            platform=(
                m_session.Platform.parse(self.config.platform)
                if self.config.platform
                else None
            ),
            username=self.config.username,
        )
        self.queue = requestqueue.RequestQueue()
        self.gate = readiness.ReadinessGate()
        self.timeouts: Set[int] = set()
        self._generation = 0

        self.user = m_user.User(self)
        self.character = m_character.CharacterEndpoint(self)
        self.characters = m_characters.Characters(self, self.session)
        self.vault = m_vault.Vault(self, self.config.ttl)

        self.refresh()

    @property
    def readystate(self) -> ReadyState:
        """Current readiness of the session."""
        return self.session.readystate

    def change(self, **fields: Any) -> 'Destiny':
        """
        Updates session or config fields and emits `changed` for every value
        that differs. All fields are set before anything is emitted.
        """
        changes = []
        for name, value in fields.items():
            if name in _SESSION_FIELDS:
                target: Any = self.session
                if name == 'platform' and value:
                    value = m_session.Platform.parse(value)
            elif name in m_config.Config.fields():
                target = self.config
            else:
                raise AttributeError(f'Unknown field {name}')

            old = getattr(target, name)
            if old == value:
                continue
            setattr(target, name, value)
            changes.append((name, value, old))

        for name, value, old in changes:
            self.changed.emit(name, value, old)
        return self

    # Readiness

    def refresh(self) -> 'Destiny':
        """Forgets the session and gathers the account information again."""
        self._generation += 1
        generation = self._generation

        self._clear(hard=False)
        self.change(readystate=ReadyState.LOADING)
        self.refreshing.emit()
        logger.info('Gathering account information')

        def current() -> bool:
            # A newer refresh or reset took over
            return generation == self._generation

        def identified(err: Optional[Exception], _: Any) -> None:
            if not current():
                return
            if err is not None:
                self._failed(err)
                return
            self.user.search(self.session.platform, self.session.username, searched)

        def searched(err: Optional[Exception], data: Any) -> None:
            if not current():
                return
            if err is None and not (isinstance(data, list) and data):
                err = errors.ApplicationError(
                    f'No membership found for {self.session.username}'
                )
            if err is not None:
                self._failed(err)
                return

            membership_id = str(data[0].get('membershipId', ''))
            self.user.account(
                self.session.platform,
                membership_id,
                functools.partial(accounted, membership_id),
            )

        def accounted(membership_id: str, err: Optional[Exception], data: Any) -> None:
            if not current():
                return
            if err is not None:
                self._failed(err)
                return

            self.characters.set(data)
            self.change(id=membership_id, readystate=ReadyState.COMPLETE)
            logger.info('Account %s is ready', membership_id)

            # Flush everything that waited for the account information
            self.gate.release(None)
            self.refreshed.emit(None)

        self.user.get(identified)
        return self

    def reset(self, hard: bool = False) -> 'Destiny':
        """
        Forgets the session and abandons a running bootstrap. A hard reset also
        clears the credentials held by the auth provider.
        """
        self._generation += 1
        self._clear(hard)
        return self

    def _clear(self, hard: bool) -> None:
        old = self.characters
        old.destroy()
        self.characters = m_characters.Characters(self, self.session)
        self.change(
            platform=None, username='', id='', readystate=ReadyState.CLOSED
        )
        # Pending vault fetches are deferred until the next bootstrap
        self.vault.clear()
        self.changed.emit('characters', self.characters, old)
        if hard:
            self.auth.clear()

    def _failed(self, err: Exception) -> None:
        failure = errors.BootstrapError(BOOTSTRAP_REASON, err)
        logger.error('%s', failure)
        # Reset before notifying, listeners may refresh right away
        self.reset(hard=True)
        self.gate.release(failure)
        self.error.emit(failure)
        self.refreshed.emit(failure)

    # Requests

    def format(
        self, endpoint: str | Sequence[Any], params: Optional[Dict[str, Any]] = None
    ) -> str:
        """Resolves an endpoint to a full URL for the current session."""
        if isinstance(endpoint, str):
            path = endpoint
        else:
            path = '/'.join(
                urllib.parse.quote(str(part), safe='{}') for part in endpoint
            )

        if urllib.parse.urlsplit(path).scheme:
            url = path
        else:
            url = self.config.api + path.lstrip('/')
            if not urllib.parse.urlsplit(url).path.endswith('/'):
                url += '/'

        platform = self.session.platform
        url = (
            url.replace('{id}', self.session.id)
            .replace('{username}', urllib.parse.quote(self.session.username))
            .replace('{platform}', str(int(platform)) if platform else '')
        )

        query = dict(params or {})
        if self.config.definitions:
            query['definitions'] = 'true'
        if self.config.language:
            query['lc'] = self.config.language
        if query:
            url += ('&' if '?' in url else '?') + urllib.parse.urlencode(query)
        return url

    def send(self, req: m_request.Request, fn: requestqueue.Callback) -> 'Destiny':
        """
        Sends a request, `fn(error, data)` is called with the (filtered)
        `Response` of the payload or with the error.
        """
        if not req.bypass and not self.session.complete:
            logger.debug('Deferring %s until the account is ready', req.url)
            self.gate.wait(functools.partial(self._resume, req, fn))
            return self

        method = req.method.upper()
        url = self.format(req.url, req.params)
        if self.queue.add(method, url, fn):
            return self

        self.auth.token(functools.partial(self._dispatch, req, method, url))
        return self

    def _resume(
        self,
        req: m_request.Request,
        fn: requestqueue.Callback,
        err: Optional[Exception],
    ) -> None:
        if err is not None:
            fn(err, None)
            return
        self.send(req, fn)

    def _dispatch(
        self,
        req: m_request.Request,
        method: str,
        url: str,
        err: Optional[Exception],
        token: Any,
    ) -> None:
        if err is not None:
            logger.error('Unable to get an access token: %s', err)
            self.queue.run(method, url, err, None)
            return

        headers = {
            'User-Agent': consts.USER_AGENT,
            'Accept': 'application/json',
            'X-API-Key': self.auth.key or self.config.key,
        }
        access_token = util.pathval(token, 'accessToken.value')
        if access_token:
            headers['Authorization'] = f'Bearer {access_token}'

        body = req.body
        if body is not None and not isinstance(body, (str, bytes)):
            body = json.dumps(body)
            headers['Content-Type'] = 'application/json'

        logger.info('Sending %s request for %s', method, url)
        self.transport.request(
            m_transport.HTTPRequest(method, url, headers, body, self.config.timeout),
            functools.partial(self._onload, req, method, url),
        )

    def _onload(
        self,
        req: m_request.Request,
        method: str,
        url: str,
        response: m_transport.HTTPResponse,
    ) -> None:
        if not response.ok:
            self.queue.run(
                method,
                url,
                errors.TransportError(
                    'There seems to be a problem with the Bungie API',
                    code=response.status,
                    action='retry',
                    text=response.reason,
                    body=response.text,
                ),
                None,
            )
            return

        try:
            data = json.loads(response.text)
        except ValueError:
            data = None
        if not isinstance(data, dict):
            self.queue.run(
                method,
                url,
                errors.ParseError(
                    'Unable to parse the JSON response from the Bungie API',
                    code=response.status,
                    action='retry',
                    text=response.reason,
                    body=response.text,
                ),
                None,
            )
            return

        # Both 0 and 1 are returned for valid requests
        code = data.get('ErrorCode', 0)
        if code == consts.THROTTLE_CODE:
            self._throttled(req, method, url, data)
            return
        if code not in consts.BENIGN_CODES:
            err = errors.ApplicationError(data.get('Message', ''), data)
            self.queue.run(method, url, err, None)
            return

        result = util.pathval(data.get('Response'), req.filter)
        self.queue.run(method, url, None, result)

    def _throttled(
        self, req: m_request.Request, method: str, url: str, data: Dict[str, Any]
    ) -> None:
        """Takes every waiter off the queue and sends them again after a delay."""
        waiters = self.queue.waiters(method, url)
        for fn in waiters:
            self.queue.remove(method, url, fn)

        limit = self.config.max_retries
        if limit is not None and req.retries >= limit:
            logger.error('Throttled %s times on %s, giving up', req.retries + 1, url)
            err = errors.ThrottleError(
                data.get('Message') or 'Throttled by the Bungie API', data
            )
            for fn in waiters:
                fn(err, None)
            return

        delay = int(float(data.get('ThrottleSeconds') or 0) * 1000)
        retry = dataclasses.replace(req, retries=req.retries + 1)
        logger.warning('Throttled on %s, retrying in %sms', url, delay)

        def resend() -> None:
            self.timeouts.discard(handle)
            # The first resend issues the request, the others queue behind it
            for fn in waiters:
                self.send(retry, fn)

        handle = self.scheduler.set_timeout(resend, delay)
        self.timeouts.add(handle)

    def destroy(self) -> None:
        """Stops all timers and the transport."""
        self._generation += 1
        for handle in list(self.timeouts):
            self.scheduler.clear(handle)
        self.timeouts.clear()
        self.characters.destroy()
        self.transport.close()
