"""
Watching and streaming watch-events.

Every watch-stream is a long-lived HTTP request, which is closed by the server
from time to time (on timeouts), or by the network (on disconnects).
The streams are re-opened forever with a fixed delay between the attempts,
so that the consumer sees one continuous infinite stream of events.

Re-opened streams do not send the last seen resource version by default
(unless configured so), so the events that happen between a disconnect
and the following connect can be missed. The consumers must be level-based.
"""
import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Mapping
from typing import cast

import aiohttp

from kubeloop._cogs.clients import api, auth, errors
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.structs import bodies, references

logger = logging.getLogger(__name__)

HTTP_GONE_CODE = 410


class WatchingError(Exception):
    """
    Raised when an unexpected error happens in the watch-stream API.
    """


class WatchingFatalError(WatchingError):
    """
    Raised when the watch-stream is rejected with no hope to recover on retries.
    """


async def infinite_watch(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        resource: references.Resource,
        namespace: str | None = None,
        _iterations: int | None = None,  # used in tests/mocks/fixtures
) -> AsyncIterator[bodies.RawEvent]:
    """
    Stream the watch-events infinitely.

    This routine never ends gracefully. If a watcher's stream fails,
    a new one is recreated after a short fixed delay, and the stream continues.
    It only exits with unrecoverable exceptions (see :class:`WatchingFatalError`)
    or when cancelled.

    The ``ERROR`` events end the current stream and are not yielded.
    The events of unknown types are ignored. All other events are yielded
    as they are, even if malformed: it is the consumer's duty to check them.
    """
    where = f'in {namespace!r}' if namespace is not None else 'cluster-wide'
    resume = settings.watching.resume_from_version
    since: str | None = None
    logger.debug(f"Starting the watch-stream for {resource} {where}.")
    try:
        while _iterations is None or _iterations > 0:  # equivalent to `while True` in non-test mode
            _iterations = None if _iterations is None else _iterations - 1
            reason = "the stream end"
            try:
                stream = watch_objs(
                    settings=settings,
                    context=context,
                    resource=resource,
                    namespace=namespace,
                    since=since if resume else None,
                )
                async with contextlib.aclosing(stream):
                    async for raw_input in stream:
                        raw_type = raw_input.get('type')
                        raw_object = raw_input.get('object')

                        # The errors end the stream; a new one is started after a delay.
                        # "410 Gone" means that our last seen resource version is too old.
                        if raw_type == 'ERROR':
                            raw_error = cast(bodies.RawError, raw_object)
                            if isinstance(raw_error, Mapping) and raw_error.get('code') == HTTP_GONE_CODE:
                                since = None
                            reason = f"an error in the stream: {raw_object!r}"
                            break

                        # Ensure that the event is something we understand and can handle.
                        if raw_type not in ['ADDED', 'MODIFIED', 'DELETED']:
                            logger.warning(f"Ignoring an unsupported event type: {raw_input!r}")
                            continue

                        # Keep the latest seen resource version for continuation on disconnects.
                        if resume and isinstance(raw_object, Mapping):
                            meta = raw_object.get('metadata') or {}
                            since = meta.get('resourceVersion', since) if isinstance(meta, Mapping) else since

                        yield cast(bodies.RawEvent, raw_input)

            except (errors.APIUnauthorizedError, errors.APIForbiddenError) as e:
                if settings.watching.fatal_auth_errors:
                    raise WatchingFatalError(f"The watch-stream for {resource} {where} "
                                             f"is rejected: {e}") from e
                reason = f"a rejection: {e}"
            except errors.APIError as e:
                reason = f"an API error: {e}"

            logger.warning(f"Restarting the watch-stream for {resource} {where} after {reason}.")
            await asyncio.sleep(settings.watching.reconnect_backoff)
    finally:
        logger.debug(f"Stopping the watch-stream for {resource} {where}.")


async def watch_objs(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        resource: references.Resource,
        namespace: str | None = None,
        since: str | None = None,
) -> AsyncIterator[bodies.RawInput]:
    """
    Watch objects of a specific resource type, until the stream is closed.

    The cluster-wide call is used if no namespace is set,
    and the namespace-scoped call is used otherwise.

    The connection-level errors end the stream silently, as normal closing:
    they are expected on the long-lived connections from time to time.
    The API errors (i.e. the rejection of the watch request) are escalated.
    """
    params: dict[str, str] = {}
    params['watch'] = 'true'
    if since is not None:
        params['resourceVersion'] = since
    if settings.watching.server_timeout is not None:
        params['timeoutSeconds'] = str(settings.watching.server_timeout)

    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )

    # Stream the parsed events from the response until it is closed server-side,
    # or until it is closed client-side by the cancellation of the consuming task.
    try:
        async for raw_input in api.stream(
            url=resource.get_url(namespace=namespace, params=params),
            logger=logger,
            settings=settings,
            context=context,
            timeout=aiohttp.ClientTimeout(
                total=settings.watching.client_timeout,
                sock_connect=connect_timeout,
            ),
        ):
            if not isinstance(raw_input, Mapping):
                raw_input = {'type': None, 'object': raw_input}  # reported as unsupported
            yield cast(bodies.RawInput, raw_input)

    except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError):
        pass
