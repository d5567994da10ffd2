"""ASGI callable type aliases.

Only the server layer touches raw ASGI; everything above it works with
:class:`~warbler.http.request.Request` and
:class:`~warbler.http.response.Response`.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

Scope: TypeAlias = MutableMapping[str, Any]
Message: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[Message]]
Send: TypeAlias = Callable[[Message], Awaitable[None]]
