"""Pytest configuration and shared fixtures for vc-conformance tests."""

from collections.abc import Generator
from typing import Any, Callable

import httpx
import pytest
import structlog

from vc_conformance import (
    FixtureStore,
    HarnessConfig,
    Implementation,
    ReferenceServer,
    TestEndpoints,
    Transport,
)
from vc_conformance.registry import parse_implementation

# 64 hex characters, used as raw key material
TEST_SEED = "9b3c8f5c0a1e4d7f2b6a9c3e5d8f1a4b7c0e3f6a9d2c5b8e1f4a7d0c3b6e9f2a"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configuration done by CLI tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def config() -> HarnessConfig:
    """Configuration with a fixed key seed and the packaged fixtures."""
    return HarnessConfig(
        base_url="http://reference.test",
        key_seed=TEST_SEED,
        capability_seeds={"TEST_ZCAP_KEY_SEED": TEST_SEED},
        client_secrets={"VENDOR_TOKEN": "s3cret-token", "VENDOR_CLIENT_SECRET": "client-secret"},
    )


@pytest.fixture(scope="session")
def fixtures() -> FixtureStore:
    """The packaged fixture corpus."""
    return FixtureStore()


@pytest.fixture
def reference() -> ReferenceServer:
    """Reference server issuing embedded proofs."""
    return ReferenceServer()


@pytest.fixture
def enveloping_reference() -> ReferenceServer:
    """Reference server issuing JOSE-enveloped credentials."""
    return ReferenceServer(enveloping=True)


@pytest.fixture
def reference_transport(
    reference: ReferenceServer, config: HarnessConfig
) -> Generator[Transport, None, None]:
    """Transport that delivers every request to the reference server in-process."""
    client = httpx.Client(transport=reference.as_transport())
    with Transport(config, client=client) as transport:
        yield transport
    client.close()


@pytest.fixture
def reference_endpoints(
    reference: ReferenceServer, reference_transport: Transport, config: HarnessConfig
) -> TestEndpoints:
    """Endpoints facade bound to the reference server for ``vc2.0``."""
    return TestEndpoints(reference.implementation(config=config), "vc2.0", reference_transport, config)


@pytest.fixture
def mock_transport(config: HarnessConfig) -> Generator[Callable[[Handler], Transport], None, None]:
    """Factory for transports answered by a handler function."""
    transports: list[Transport] = []

    def factory(handler: Handler) -> Transport:
        transport = Transport(config, client=httpx.Client(transport=httpx.MockTransport(handler)))
        transports.append(transport)
        return transport

    yield factory
    for transport in transports:
        transport.close()


def _make_implementation(name: str = "vendor", url: str = "http://vendor.test", **roles: Any) -> Implementation:
    """Build an implementation with one endpoint per role.

    Keyword arguments map role names (``issuers``, ``verifiers``, ``provers``,
    ``vpVerifiers``) to tag lists or to full endpoint entries.
    """
    entry: dict[str, Any] = {"name": name}
    for role, value in roles.items():
        if isinstance(value, dict):
            entry[role] = [value]
        else:
            entry[role] = [{"id": f"did:example:{name}", "endpoint": f"{url}/{role}", "tags": list(value)}]
    return parse_implementation(entry, HarnessConfig())


@pytest.fixture
def make_implementation() -> Callable[..., Implementation]:
    """Factory for implementations with one endpoint per role."""
    return _make_implementation


def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "unit: fast tests with no network access")
    config.addinivalue_line(
        "markers", "integration: tests that drive a full suite run against the reference server"
    )
