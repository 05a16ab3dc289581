"""
All configuration flags, options, settings to fine-tune an operator.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

In this package, they are called *"settings"* (plural).
Combined, they form a *"configuration"* (singular).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).

The settings are never global: an instance is created per operator
and passed explicitly to every routine that needs it.
"""
import dataclasses
import enum
from collections.abc import Iterable


class ErrorPolicy(str, enum.Enum):
    """ What the event sequencer does when a notification handler fails. """
    CONTINUE = 'continue'
    HALT = 'halt'


@dataclasses.dataclass
class WatchingSettings:

    reconnect_backoff: float = 0.1
    """
    How long should a pause be between watch requests (to prevent API flooding).

    The delay is fixed: there is no exponential growth, no jitter,
    and no limit on the number of reconnections. The watch-streams
    are restarted forever until the operator is stopped.
    """

    resume_from_version: bool = False
    """
    Should a re-opened watch-stream continue from the last seen resource version?

    By default, it does not: every reconnection starts a fresh watch,
    so the changes that happen between a disconnect and the next connect
    can be missed. The notification handlers are expected to be level-based
    (idempotent), not edge-based, and to be fine with an occasional gap.

    If enabled, the last seen ``resourceVersion`` is sent on reconnection;
    it is forgotten when the server replies that it is too old ("410 Gone").
    """

    fatal_auth_errors: bool = True
    """
    Should the authentication/authorization rejections (HTTP 401 & 403)
    of the watch requests stop the operator instead of being retried?

    If true, :class:`WatchingFatalError` is raised from the operator's run,
    so that the caller decides how to shut down. If false, they are retried
    forever as any other stream failure (with the same fixed backoff).
    """

    server_timeout: float | None = None
    """
    The maximum duration of one streaming request. Patched in some tests.
    If ``None``, then obey the server-side timeouts (they seem to be random).
    """

    client_timeout: float | None = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    """

    connect_timeout: float | None = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    """


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: float | None = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the regular API requests (non-streaming), in seconds.
    """

    connect_timeout: float | None = None
    """
    A timeout to establish a connection to the API, in seconds.
    """

    error_backoffs: float | Iterable[float] = (1, 1, 2)
    """
    Backoff intervals in case of networking or server-side errors (5xx).

    Each request is retried as many times as there are intervals here.
    Client-side errors (4xx) are never retried: e.g. conflicts on writes
    are reported back immediately. To disable retries, set it to ``()``.
    """


@dataclasses.dataclass
class QueueingSettings:

    max_size: int = 0
    """
    How many notifications can be queued for the handlers at most.

    ``0`` means no limit: a fast stream can queue up an unbounded backlog
    ahead of slow handlers -- a capacity risk accepted by default.
    With a positive value, the watch-streams are paused when it is full.
    """

    error_policy: ErrorPolicy = ErrorPolicy.CONTINUE
    """
    What to do with a failed notification handler.

    ``CONTINUE`` logs the error and proceeds to the next notification.
    ``HALT`` stops the sequencing and fails the operator with
    :class:`HandlerFailedError`.
    """


@dataclasses.dataclass
class DefinitionsSettings:

    url: str = '/apis/apiextensions.k8s.io/v1/customresourcedefinitions'
    """
    Where the custom resource definitions are posted to
    if their ``apiVersion`` does not name the API group and version.
    """


@dataclasses.dataclass
class OperatorSettings:
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    queueing: QueueingSettings = dataclasses.field(default_factory=QueueingSettings)
    definitions: DefinitionsSettings = dataclasses.field(default_factory=DefinitionsSettings)
