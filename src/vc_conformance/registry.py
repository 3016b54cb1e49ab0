"""Implementation registry.

The registry describes every implementation under test and its role
endpoints. It is loaded once per run and never mutated afterwards.

A registry manifest is a JSON list of implementations::

    [
      {
        "name": "example",
        "issuers": [
          {"id": "did:example:issuer", "endpoint": "{base_url}/credentials/issue",
           "tags": ["vc2.0", "vc-api"], "options": {}}
        ],
        "verifiers": [...],
        "provers": [...],
        "vpVerifiers": [...]
      }
    ]
"""

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional, Union

from .config import HarnessConfig
from .errors import ConfigurationError

# Role keys as they appear in registry manifests
ROLES = ("issuers", "verifiers", "provers", "vpVerifiers")


@dataclass(frozen=True)
class Endpoint:
    """One role endpoint of an implementation.

    Attributes:
        id: Identifier the endpoint acts as (e.g. the issuer DID); may be empty
        url: Absolute URL requests are posted to
        tags: Capability profiles the endpoint supports
        settings: The raw manifest entry, including auth settings
    """

    id: str
    url: str
    tags: frozenset[str] = frozenset()
    settings: Mapping[str, Any] = field(default_factory=dict)

    @property
    def options(self) -> Optional[dict[str, Any]]:
        """Endpoint-declared request options, if any."""
        options = self.settings.get("options")
        return dict(options) if options is not None else None

    @property
    def is_secure(self) -> bool:
        """Whether requests go over HTTPS."""
        return self.url.startswith("https:")

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(frozen=True)
class Implementation:
    """A named system under test with endpoints grouped by role."""

    name: str
    issuers: tuple[Endpoint, ...] = ()
    verifiers: tuple[Endpoint, ...] = ()
    provers: tuple[Endpoint, ...] = ()
    vp_verifiers: tuple[Endpoint, ...] = ()

    def endpoints_for(self, role: str) -> tuple[Endpoint, ...]:
        """Return the endpoints for a role.

        Args:
            role: One of ``issuers``, ``verifiers``, ``provers``, ``vpVerifiers``

        Raises:
            ValueError: If the role name is unknown
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role {role!r}; expected one of {', '.join(ROLES)}")
        return self.vp_verifiers if role == "vpVerifiers" else getattr(self, role)


def find_endpoint(endpoints: Iterable[Endpoint], tag: str) -> Optional[Endpoint]:
    """Return the first endpoint carrying ``tag``, or None if there is none."""
    for endpoint in endpoints:
        if endpoint.has_tag(tag):
            return endpoint
    return None


class Registry:
    """Ordered, read-only collection of implementations keyed by name."""

    def __init__(self, implementations: Iterable[Implementation]):
        self._implementations = tuple(implementations)
        names = [impl.name for impl in self._implementations]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate implementation names: {', '.join(duplicates)}")

    def __iter__(self) -> Iterator[Implementation]:
        return iter(self._implementations)

    def __len__(self) -> int:
        return len(self._implementations)

    def __contains__(self, name: object) -> bool:
        return any(impl.name == name for impl in self._implementations)

    def __getitem__(self, name: str) -> Implementation:
        for impl in self._implementations:
            if impl.name == name:
                return impl
        raise KeyError(name)

    @property
    def names(self) -> list[str]:
        return [impl.name for impl in self._implementations]


def _parse_endpoint(entry: Mapping[str, Any], config: HarnessConfig, where: str) -> Endpoint:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"{where}: endpoint entry must be an object")
    url = entry.get("endpoint")
    if not isinstance(url, str) or not url:
        raise ConfigurationError(f"{where}: endpoint entry needs an 'endpoint' URL")
    tags = entry.get("tags", [])
    if isinstance(tags, str) or not all(isinstance(t, str) for t in tags):
        raise ConfigurationError(f"{where}: 'tags' must be a list of strings")

    url = url.replace("{base_url}", config.base_url.rstrip("/"))
    settings = dict(entry)
    settings["endpoint"] = url
    return Endpoint(
        id=entry.get("id") or "",
        url=url,
        tags=frozenset(tags),
        settings=MappingProxyType(settings),
    )


def parse_implementation(entry: Mapping[str, Any], config: HarnessConfig) -> Implementation:
    """Parse one manifest entry into an :class:`Implementation`.

    Raises:
        ConfigurationError: If the entry is malformed
    """
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigurationError("Implementation entry needs a non-empty 'name'")

    roles: dict[str, tuple[Endpoint, ...]] = {}
    for role in ROLES:
        items = entry.get(role) or []
        if not isinstance(items, list):
            raise ConfigurationError(f"{name}.{role} must be a list")
        roles[role] = tuple(
            _parse_endpoint(item, config, f"{name}.{role}[{i}]") for i, item in enumerate(items)
        )

    return Implementation(
        name=name,
        issuers=roles["issuers"],
        verifiers=roles["verifiers"],
        provers=roles["provers"],
        vp_verifiers=roles["vpVerifiers"],
    )


def load_registry(
    source: Union[str, Path, list[Mapping[str, Any]]],
    config: Optional[HarnessConfig] = None,
) -> Registry:
    """Load a registry from a manifest file or an already-parsed list.

    Args:
        source: Path to a JSON manifest, or a list of implementation entries
        config: Configuration supplying ``base_url``; defaults apply if None

    Returns:
        Registry preserving manifest order

    Raises:
        ConfigurationError: If the manifest cannot be read or is malformed
    """
    config = config or HarnessConfig()

    if isinstance(source, (str, Path)):
        try:
            with open(source, encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot load registry {source}: {e}") from e
    else:
        entries = source

    if not isinstance(entries, list):
        raise ConfigurationError("Registry manifest must be a list of implementations")

    return Registry(parse_implementation(entry, config) for entry in entries)
