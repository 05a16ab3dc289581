"""
The main kubeloop module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the framework's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubeloop import (
    on,  # as a separate name on the public namespace
)
from kubeloop._cogs.clients.auth import (
    APIContext,
)
from kubeloop._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIGoneError,
    APITooManyRequestsError,
)
from kubeloop._cogs.clients.watching import (
    WatchingError,
    WatchingFatalError,
)
from kubeloop._cogs.configs.configuration import (
    OperatorSettings,
    WatchingSettings,
    NetworkingSettings,
    QueueingSettings,
    DefinitionsSettings,
    ErrorPolicy,
)
from kubeloop._cogs.helpers.typedefs import (
    Logger,
)
from kubeloop._cogs.helpers.versions import (
    version as __version__,
)
from kubeloop._cogs.structs.bodies import (
    EventType,
    RawBody,
    RawEvent,
    RawMeta,
)
from kubeloop._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from kubeloop._cogs.structs.definitions import (
    DefinitionError,
    DefinitionInfo,
)
from kubeloop._cogs.structs.identities import (
    MalformedEventError,
    Notification,
    ResourceIdentity,
)
from kubeloop._cogs.structs.references import (
    Resource,
)
from kubeloop._core.engines.loggers import (
    LogFormat,
    ObjectLogger,
    configure,
)
from kubeloop._core.intents.piggybacking import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)
from kubeloop._core.intents.registries import (
    OperatorRegistry,
    get_default_registry,
    set_default_registry,
)
from kubeloop._core.reactor.inventory import (
    WatchRegistration,
)
from kubeloop._core.reactor.queueing import (
    EventSequencer,
    HandlerFailedError,
)
from kubeloop._core.reactor.running import (
    Operator,
    run,
    operator,
)

__all__ = [
    'on',
    'APIContext',
    'APIError',
    'APIClientError',
    'APIServerError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'APIGoneError',
    'APITooManyRequestsError',
    'WatchingError',
    'WatchingFatalError',
    'OperatorSettings',
    'WatchingSettings',
    'NetworkingSettings',
    'QueueingSettings',
    'DefinitionsSettings',
    'ErrorPolicy',
    'Logger',
    'EventType',
    'RawBody',
    'RawEvent',
    'RawMeta',
    'LoginError',
    'ConnectionInfo',
    'DefinitionError',
    'DefinitionInfo',
    'MalformedEventError',
    'Notification',
    'ResourceIdentity',
    'Resource',
    'LogFormat',
    'ObjectLogger',
    'configure',
    'login',
    'login_with_kubeconfig',
    'login_with_service_account',
    'OperatorRegistry',
    'get_default_registry',
    'set_default_registry',
    'WatchRegistration',
    'EventSequencer',
    'HandlerFailedError',
    'Operator',
    'run',
    'operator',
]
