from collections.abc import Mapping
from typing import Any

from kubeloop._cogs.clients import api, auth
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import typedefs


async def create_obj(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        url: str,
        body: Mapping[str, Any],
        logger: typedefs.Logger,
) -> Any:
    """
    Create an object in a collection by its URL; return the created body.

    All errors are escalated as is, including the conflicts (HTTP 409)
    when the object already exists: it is the caller's decision what to do.
    """
    created_body = await api.post(
        url=url,
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return created_body
