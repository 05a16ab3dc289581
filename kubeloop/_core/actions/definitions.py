"""
Registration of the custom resource definitions (CRDs) on the server.

The registration is idempotent: if the definition already exists,
it is left as is (not updated), and the registration is considered done.
All other failures are fatal for the registration and are escalated.
"""
import logging
import os
from collections.abc import Mapping
from typing import Any

import yaml

from kubeloop._cogs.clients import auth, creating, errors
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import typedefs
from kubeloop._cogs.structs import definitions

logger = logging.getLogger(__name__)


def load_definition(path: str | os.PathLike[str]) -> Any:
    with open(path, encoding='utf-8') as f:
        return yaml.safe_load(f)


async def register_definition(
        source: str | os.PathLike[str] | Mapping[str, Any],
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        logger: typedefs.Logger = logger,
) -> definitions.DefinitionInfo:
    """
    Register a definition from a YAML file or from an already parsed document.

    Returns the parsed coordinates of the definition, so that the watches
    can be started for exactly the registered group, version, and plural.
    """
    document = source if isinstance(source, Mapping) else load_definition(source)
    info = definitions.parse_definition(document)

    try:
        await creating.create_obj(
            settings=settings,
            context=context,
            url=definitions.definition_url(document, default=settings.definitions.url),
            body=document,
            logger=logger,
        )
    except errors.APIConflictError:
        logger.debug(f"The definition {info.name!r} already exists; keeping it as is.")
    else:
        logger.info(f"The definition {info.name!r} is registered.")
    return info
