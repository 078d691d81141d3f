"""
Registry and factory for fiction-site adapters.

A reference is either a URL on a registered host, or a short form such as
``rrl:12345`` whose ``/``-separated fields fill the adapter's URL template.
"""
import re
import string
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

from .exceptions import ResolutionError
from .logging import logger
from .royalroad_adapter import RoyalRoadAdapter
from .webnovel_adapter import WebnovelAdapter

_SHORT_REFERENCE = re.compile(r'^(?P<scheme>[A-Za-z][A-Za-z0-9+.-]*):(?P<rest>.*)$', re.DOTALL)


def template_arity(url_format):
    """Number of replacement fields in a ``str.format`` URL template."""
    return sum(1 for _, field, _, _ in string.Formatter().parse(url_format) if field is not None)


@dataclass(frozen=True)
class Registration:
    adapter_cls: type
    hosts: frozenset
    scheme: str = None
    url_format: str = None

    @property
    def arity(self):
        return template_arity(self.url_format) if self.url_format else 0

    def build_url(self, rest):
        fields = rest.strip().split('/')
        if len(fields) != self.arity or not all(fields):
            raise ResolutionError(
                f"'{self.scheme}:' references take {self.arity} field(s) "
                f"({self.url_format}), got {len(fields)}: {rest!r}"
            )
        return self.url_format.format(*(quote(field, safe='') for field in fields))


@dataclass(frozen=True)
class Resolution:
    reference: str
    adapter_cls: type
    url: str

    def create_adapter(self, fetcher):
        return self.adapter_cls(self.url, fetcher)


class AdapterRegistry:
    """Maps host names and short schemes to adapter classes."""

    def __init__(self):
        self._by_host = {}
        self._by_scheme = {}
        self._registrations = []

    def register(self, adapter_cls, hosts=(), scheme=None, url_format=None):
        if scheme and not url_format:
            raise ValueError(f"Scheme '{scheme}' needs a URL template")
        registration = Registration(
            adapter_cls,
            frozenset(host.lower() for host in hosts),
            scheme.lower() if scheme else None,
            url_format,
        )
        for host in registration.hosts:
            if host in self._by_host:
                raise ValueError(f"Host '{host}' is already registered to {self._by_host[host].adapter_cls.__name__}")
        if registration.scheme in self._by_scheme:
            raise ValueError(f"Scheme '{registration.scheme}' is already registered")

        for host in registration.hosts:
            self._by_host[host] = registration
        if registration.scheme:
            self._by_scheme[registration.scheme] = registration
        self._registrations.append(registration)
        return registration

    def registrations(self):
        return tuple(self._registrations)

    def resolve(self, reference):
        """Map ``reference`` to an adapter class and the URL to fetch.

        Raises:
            ResolutionError: No registered host or scheme matches, or the short
                reference has the wrong number of fields.
        """
        reference = (reference or '').strip()
        if not reference:
            raise ResolutionError("Empty reference")

        try:
            parts = urlsplit(reference)
            host = parts.hostname if parts.scheme.lower() in ('http', 'https') else None
        except ValueError:
            host = None
        if host and host.lower() in self._by_host:
            registration = self._by_host[host.lower()]
            logger.debug(f"[RESOLVE] {reference} -> {registration.adapter_cls.__name__} (host)")
            return Resolution(reference, registration.adapter_cls, reference)

        match = _SHORT_REFERENCE.match(reference)
        if match and match.group('scheme').lower() in self._by_scheme:
            registration = self._by_scheme[match.group('scheme').lower()]
            url = registration.build_url(match.group('rest'))
            logger.debug(f"[RESOLVE] {reference} -> {registration.adapter_cls.__name__} ({url})")
            return Resolution(reference, registration.adapter_cls, url)

        raise ResolutionError(f"No handler found for {reference}")


def build_default_registry():
    """Registry with every adapter shipped in this package."""
    registry = AdapterRegistry()
    registry.register(
        RoyalRoadAdapter,
        hosts=('royalroad.com', 'www.royalroad.com', 'royalroadl.com', 'www.royalroadl.com'),
        scheme='rrl',
        url_format='https://www.royalroad.com/fiction/{}',
    )
    registry.register(
        WebnovelAdapter,
        hosts=('webnovel.com', 'www.webnovel.com', 'm.webnovel.com'),
        scheme='wn',
        url_format='https://www.webnovel.com/book/{}',
    )
    return registry


def get_adapter(reference, fetcher, registry=None):
    """Return the adapter instance for ``reference``."""
    registry = registry or build_default_registry()
    return registry.resolve(reference).create_adapter(fetcher)
