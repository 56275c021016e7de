"""
Description of a request sent through the client.
"""

import dataclasses

from typing import Any, Dict, Optional, Sequence


@dataclasses.dataclass
class Request:
    """
    A request before its URL is resolved.

    - url:     Full URL, or path segments relative to the API base. Segments
               and strings may contain `{id}`, `{username}` and `{platform}`.
    - method:  HTTP method.
    - filter:  Dotted path extracted from the `Response` of the payload.
    - bypass:  Send even if the client has not finished bootstrapping.
    - body:    Request body, anything that is not str/bytes is sent as JSON.
    - params:  Extra query string parameters.
    - retries: Times this request has been throttled already.
    """

    url: str | Sequence[Any]
    method: str = 'GET'
    filter: Optional[str] = None
    bypass: bool = False
    body: Any = None
    params: Optional[Dict[str, Any]] = None
    retries: int = 0
