"""
Identities of the individual objects and the notifications about them.

An identity is everything needed to address an object in the API and
to write to it safely: the collection it belongs to, its name and namespace,
its API version and kind (for the written bodies), and the resource version
(for the server to detect the conflicting writes).

Identities are immutable and are constructed per event: they are never
updated in place. A write returns a new identity with a new resource version.
"""
import dataclasses
from collections.abc import Mapping
from typing import Any

from kubeloop._cogs.structs import bodies


class MalformedEventError(ValueError):
    """ Raised when an object lacks the fields required for its identity. """


@dataclasses.dataclass(frozen=True)
class ResourceIdentity:
    collection_id: str
    name: str
    namespace: str | None
    resource_version: str
    api_version: str
    kind: str

    @classmethod
    def from_body(
            cls,
            body: Mapping[str, Any],
            *,
            plural: str,
    ) -> "ResourceIdentity":
        """
        Build an identity of an object as it arrives in a watch-stream.

        The collection id is ``{plural}.{apiVersion}`` of the object's body.
        """
        api_version = body.get('apiVersion') if isinstance(body, Mapping) else None
        collection_id = f'{plural}.{api_version}' if api_version else plural
        return cls.from_body_with_id(body, collection_id=collection_id)

    @classmethod
    def from_body_with_id(
            cls,
            body: Mapping[str, Any],
            *,
            collection_id: str,
    ) -> "ResourceIdentity":
        """
        Build an identity of an object in an already known collection.

        Used for the bodies returned from the writes, which belong
        to the same collection as the identity used for writing.
        """
        if not isinstance(body, Mapping):
            raise MalformedEventError(f"Malformed event object for {collection_id!r}: not a mapping.")
        meta = body.get('metadata') or {}
        name = meta.get('name') if isinstance(meta, Mapping) else None
        resource_version = meta.get('resourceVersion') if isinstance(meta, Mapping) else None
        api_version = body.get('apiVersion')
        kind = body.get('kind')
        if not name or not resource_version or not api_version or not kind:
            raise MalformedEventError(f"Malformed event object for {collection_id!r}.")
        return cls(
            collection_id=collection_id,
            name=name,
            namespace=meta.get('namespace') or None,
            resource_version=resource_version,
            api_version=api_version,
            kind=kind,
        )

    def __str__(self) -> str:
        return f'{self.namespace}/{self.name}' if self.namespace else self.name


@dataclasses.dataclass(frozen=True)
class Notification:
    """
    A single change of a single object, as delivered to the handlers.

    The ``object`` is the raw body as received from the watch-stream.
    It is not copied, so it should be treated as read-only.
    """
    identity: ResourceIdentity
    type: bodies.EventType
    object: bodies.RawBody

    @classmethod
    def from_raw_event(
            cls,
            raw_event: bodies.RawEvent,
            *,
            plural: str,
    ) -> "Notification":
        """
        Build a notification from a raw watch-event; fail if it is malformed.
        """
        try:
            type_ = bodies.EventType(raw_event.get('type'))
        except ValueError:
            raise MalformedEventError(f"Unsupported event type: {raw_event.get('type')!r}")
        identity = ResourceIdentity.from_body(raw_event.get('object'), plural=plural)
        return cls(identity=identity, type=type_, object=raw_event['object'])

    @property
    def meta(self) -> bodies.RawMeta:
        return self.object.get('metadata', {})

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def namespace(self) -> str | None:
        return self.identity.namespace

    @property
    def finalizers(self) -> list[str]:
        return list(self.meta.get('finalizers') or [])

    @property
    def deletion_timestamp(self) -> str | None:
        return self.meta.get('deletionTimestamp')
