"""
References to the resource kinds (collections) served by the API.
"""
import dataclasses
import urllib.parse
from collections.abc import Iterator, Mapping


@dataclasses.dataclass(frozen=True)
class Resource:
    """
    A reference to a very specific custom or built-in resource kind.

    It is used to form the K8s API URLs. Generally, K8s API only needs
    an API group, an API version, and a plural name of the resource.
    """

    group: str
    """
    The resource's API group; e.g. ``"example.io"``, ``"apps"``, ``"batch"``.
    For Core v1 API resources, an empty string: ``""``.
    """

    version: str
    """
    The resource's API version; e.g. ``"v1"``, ``"v1beta1"``, etc.
    """

    plural: str
    """
    The resource's plural name; e.g. ``"pods"``, ``"widgets"``.
    It is used as an API endpoint, together with API group & version.
    """

    def __repr__(self) -> str:
        return self.collection_id

    # Mostly for tests and unpacking, as in `watch_resource(*resource, handler)`.
    def __iter__(self) -> Iterator[str]:
        return iter((self.group, self.version, self.plural))

    @property
    def api_version(self) -> str:
        """ The ``apiVersion`` as used in the bodies: ``group/version`` or ``version``. """
        return f'{self.group}/{self.version}' if self.group else self.version

    @property
    def collection_id(self) -> str:
        """ The key of the watched collection: ``plural.apiVersion``. """
        return f'{self.plural}.{self.api_version}'

    def get_url(
            self,
            *,
            server: str | None = None,
            namespace: str | None = None,
            name: str | None = None,
            subresource: str | None = None,
            params: Mapping[str, str] | None = None,
    ) -> str:
        """
        Build a URL to be used with K8s API.

        If the namespace is not set, a cluster-wide URL is returned.

        If the name is not set, the URL for the resource list is returned.
        Otherwise (if set), the URL for the individual resource is returned.

        If subresource is set, that subresource's URL is returned,
        regardless of whether such a subresource is known or not.

        Params go to the query parameters (``?param1=value1&param2=value2...``).
        """
        if subresource is not None and name is None:
            raise ValueError("Subresources can be used only with specific resources by their name.")

        parts: list[str | None] = [
            '/apis' if self.group else '/api',
            self.group,
            self.version,
            'namespaces' if namespace is not None else None,
            namespace,
            self.plural,
            name,
            subresource,
        ]

        query = urllib.parse.urlencode(params, encoding='utf-8') if params else ''
        path = '/'.join([part for part in parts if part])
        url = path + ('?' if query else '') + query
        return url if server is None else server.rstrip('/') + '/' + url.lstrip('/')
