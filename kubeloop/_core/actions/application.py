"""
Routines to apply the handlers' results to the objects: statuses & finalizers.

All writes carry the resource version of the identity they are based on,
so the server rejects them if the object has changed since then (HTTP 409).
Such conflicts, as well as any other API or network failures, are not raised:
they are logged, and ``None`` is returned instead of a new identity.
The caller will see the object again with the next notification
(which is the reason of the conflict) and can retry from there.

On success, a new identity is returned, with the fresh resource version,
so that the following writes in the same handler do not conflict
with the write that has just happened.
"""
import asyncio
from collections.abc import Awaitable, Mapping, Sequence
from typing import Any

import aiohttp

from kubeloop._cogs.clients import auth, errors, patching
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import typedefs
from kubeloop._cogs.structs import bodies, identities
from kubeloop._core.engines import loggers
from kubeloop._core.reactor import inventory

# All the failures of writing that are reported as "no result" instead of raising.
WRITE_ERRORS = (errors.APIError, aiohttp.ClientError, asyncio.TimeoutError)


def build_status_body(
        identity: identities.ResourceIdentity,
        status: Mapping[str, Any],
) -> dict[str, Any]:
    metadata: dict[str, Any] = {'name': identity.name}
    if identity.namespace is not None:
        metadata['namespace'] = identity.namespace
    metadata['resourceVersion'] = identity.resource_version
    return {
        'apiVersion': identity.api_version,
        'kind': identity.kind,
        'metadata': metadata,
        'status': dict(status),
    }


async def set_status(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        registry: inventory.WatchRegistry,
        identity: identities.ResourceIdentity,
        status: Mapping[str, Any],
        logger: typedefs.Logger | None = None,
) -> identities.ResourceIdentity | None:
    """
    Replace the whole status of an object (``PUT .../status``).
    """
    url = registry.build_url(identity, subresource='status')
    object_logger = loggers.ObjectLogger(identity=identity, logger=logger)
    return await _apply(
        identity=identity,
        what="replace the status",
        logger=object_logger,
        request=patching.replace_obj(
            settings=settings,
            context=context,
            url=url,
            body=build_status_body(identity, status),
            logger=object_logger,
        ),
    )


async def patch_status(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        registry: inventory.WatchRegistry,
        identity: identities.ResourceIdentity,
        status: Mapping[str, Any],
        logger: typedefs.Logger | None = None,
) -> identities.ResourceIdentity | None:
    """
    Merge-patch the status of an object: only the mentioned fields are changed.
    """
    url = registry.build_url(identity, subresource='status')
    object_logger = loggers.ObjectLogger(identity=identity, logger=logger)
    return await _apply(
        identity=identity,
        what="patch the status",
        logger=object_logger,
        request=patching.patch_obj(
            settings=settings,
            context=context,
            url=url,
            patch=build_status_body(identity, status),
            logger=object_logger,
        ),
    )


async def set_finalizers(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        registry: inventory.WatchRegistry,
        identity: identities.ResourceIdentity,
        finalizers: Sequence[str],
        logger: typedefs.Logger | None = None,
) -> identities.ResourceIdentity | None:
    """
    Replace the list of finalizers of an object with the new one.

    A merge-patch replaces the lists as a whole, so the list must contain
    all the finalizers to keep, not only ours.
    """
    url = registry.build_url(identity)
    object_logger = loggers.ObjectLogger(identity=identity, logger=logger)
    return await _apply(
        identity=identity,
        what="set the finalizers",
        logger=object_logger,
        request=patching.patch_obj(
            settings=settings,
            context=context,
            url=url,
            patch={'metadata': {'finalizers': list(finalizers)}},
            logger=object_logger,
        ),
    )


async def _apply(
        *,
        identity: identities.ResourceIdentity,
        what: str,
        request: Awaitable[bodies.RawBody],
        logger: typedefs.Logger,
) -> identities.ResourceIdentity | None:
    try:
        body = await request
    except errors.APIConflictError as e:
        logger.error(f"Failed to {what} due to a conflict (version {identity.resource_version}): {e}")
        return None
    except WRITE_ERRORS as e:
        logger.error(f"Failed to {what}: {e!r}")
        return None

    try:
        return identities.ResourceIdentity.from_body_with_id(body, collection_id=identity.collection_id)
    except identities.MalformedEventError as e:
        logger.error(f"Failed to {what}: the server's response is malformed: {e}")
        return None
