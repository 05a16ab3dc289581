"""
The inventory of the watched collections of an operator.

Every collection (a resource type, optionally in one namespace) is watched
at most once per operator, with one handler for all its notifications.
The inventory keeps the handler, the resource reference for building the URLs
of the collection's objects, and the watching task for stopping it later.
"""
import asyncio
import dataclasses
from collections.abc import Iterator

from kubeloop._cogs.structs import identities, references
from kubeloop._core.reactor import queueing


@dataclasses.dataclass
class WatchRegistration:
    resource: references.Resource
    handler: queueing.NotificationFn
    namespace: str | None = None
    task: asyncio.Task[None] | None = None

    @property
    def collection_id(self) -> str:
        return self.resource.collection_id


class WatchRegistry:
    """
    All registrations of an operator, keyed by their collection ids.
    """

    def __init__(self) -> None:
        super().__init__()
        self._registrations: dict[str, WatchRegistration] = {}

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {list(self._registrations)!r}>'

    def __len__(self) -> int:
        return len(self._registrations)

    def __iter__(self) -> Iterator[WatchRegistration]:
        return iter(list(self._registrations.values()))

    def __contains__(self, collection_id: object) -> bool:
        return collection_id in self._registrations

    def register(self, registration: WatchRegistration) -> WatchRegistration:
        key = registration.collection_id
        if key in self._registrations:
            raise ValueError(f"The collection {key!r} is already watched.")
        self._registrations[key] = registration
        return registration

    def get(self, collection_id: str) -> WatchRegistration:
        try:
            return self._registrations[collection_id]
        except KeyError:
            raise LookupError(f"The collection {collection_id!r} is not watched.") from None

    def build_url(
            self,
            identity: identities.ResourceIdentity,
            subresource: str | None = None,
    ) -> str:
        """
        The URL of an individual object (or its subresource) of a watched collection.

        The object's own namespace is used, not the namespace of the watch:
        a cluster-wide watch yields objects from all namespaces.
        """
        registration = self.get(identity.collection_id)
        return registration.resource.get_url(
            namespace=identity.namespace,
            name=identity.name,
            subresource=subresource,
        )

    @property
    def tasks(self) -> list[asyncio.Task[None]]:
        return [registration.task for registration in self._registrations.values()
                if registration.task is not None]
