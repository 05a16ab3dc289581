from collections.abc import Mapping
from typing import Any

from kubeloop._cogs.clients import api, auth
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import typedefs
from kubeloop._cogs.structs import bodies

MERGE_PATCH_HEADERS = {'Content-Type': 'application/merge-patch+json'}


async def patch_obj(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        url: str,
        patch: Mapping[str, Any],
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Patch an object (or its subresource) by its URL as a JSON merge-patch.

    Returns the patched body as reported by the server.
    The fields absent in the patch are left intact server-side;
    the fields with ``None`` values are removed (as per RFC 7386).
    """
    patched_body: bodies.RawBody = await api.patch(
        url=url,
        headers=MERGE_PATCH_HEADERS,
        payload=patch,
        context=context,
        settings=settings,
        logger=logger,
    )
    return patched_body


async def replace_obj(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        url: str,
        body: Mapping[str, Any],
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Replace an object (or its subresource) by its URL with the full new body.

    The body must carry the last known resource version, so that the server
    rejects the replacement if the object was changed since then (HTTP 409).
    """
    replaced_body: bodies.RawBody = await api.put(
        url=url,
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return replaced_body
