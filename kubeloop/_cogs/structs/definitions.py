"""
Custom resource definitions: as documents, and as the watch coordinates.

The coordinates of a watch (group, version, plural) are taken from
the same document that is registered, so that the watched resource
cannot disagree with the installed definition.
"""
import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

from kubeloop._cogs.structs import references


class DefinitionError(Exception):
    """ Raised when a definition document lacks the essential fields. """


@dataclasses.dataclass(frozen=True)
class DefinitionInfo:
    name: str
    group: str
    versions: Sequence[Mapping[str, Any]]
    plural: str
    kind: str | None = None
    scope: str | None = None

    @property
    def version_names(self) -> list[str]:
        return [version['name'] for version in self.versions if version.get('name')]

    def resource(self, version: str | None = None) -> references.Resource:
        """
        The resource to watch for the definition's version.

        If no version is requested, the first served version is used
        (or the first declared one if none are marked as served).
        """
        if version is None:
            served = [v['name'] for v in self.versions if v.get('name') and v.get('served', True)]
            names = served or self.version_names
            if not names:
                raise DefinitionError(f"No versions are defined in {self.name!r}.")
            version = names[0]
        elif version not in self.version_names:
            raise DefinitionError(f"Version {version!r} is not defined in {self.name!r}.")
        return references.Resource(self.group, version, self.plural)


def parse_definition(document: Mapping[str, Any]) -> DefinitionInfo:
    """
    Extract the watch coordinates from a custom resource definition document.

    Both the ``spec.versions`` list (``apiextensions.k8s.io/v1``) and the legacy
    ``spec.version`` string (``apiextensions.k8s.io/v1beta1``) are accepted.
    """
    if not isinstance(document, Mapping):
        raise DefinitionError(f"A definition must be a mapping, got {type(document).__name__}.")

    metadata = document.get('metadata') or {}
    spec = document.get('spec') or {}
    names = spec.get('names') or {}
    group = spec.get('group')
    plural = names.get('plural')

    versions: list[Mapping[str, Any]] = list(spec.get('versions') or [])
    if not versions and spec.get('version'):
        versions = [{'name': spec['version'], 'served': True, 'storage': True}]

    if not group:
        raise DefinitionError("The definition has no spec.group.")
    if not plural:
        raise DefinitionError("The definition has no spec.names.plural.")
    if not versions:
        raise DefinitionError("The definition has no spec.versions.")

    return DefinitionInfo(
        name=metadata.get('name') or f'{plural}.{group}',
        group=group,
        versions=versions,
        plural=plural,
        kind=names.get('kind'),
        scope=spec.get('scope'),
    )


def definition_url(document: Mapping[str, Any], default: str) -> str:
    """
    The endpoint for posting the definition, as per its own ``apiVersion``.

    E.g., ``apiextensions.k8s.io/v1beta1`` documents go to the ``v1beta1``
    endpoint. Documents with no group in ``apiVersion`` go to the default.
    """
    api_version = document.get('apiVersion')
    if not isinstance(api_version, str) or '/' not in api_version.strip('/'):
        return default
    return f"/apis/{api_version.strip('/')}/customresourcedefinitions"
