"""vc-conformance: conformance test harness for Verifiable Credentials Data Model 2.0."""

# Hide module imports
from . import assertions, envelopes, matrix, registry, transport
from .assertions import (
    check_validity_period,
    includes_all_required_properties,
    is_secured,
    should_be_issued_vc,
    should_return_result,
    should_throw_invalid_input,
)
from .config import HarnessConfig, load_config
from .documents import BASE_CONTEXT_URL, concat_proof
from .endpoints import TestEndpoints
from .envelopes import decode_envelope, envelop, extract_if_enveloped
from .errors import (
    AssertionFailure,
    ConfigurationError,
    ConformanceError,
    EnvelopeDecodeError,
    HTTPError,
    NoMatchingEndpointError,
    RedirectNotSupportedError,
    VerificationError,
)
from .fixtures import FixtureStore
from .matrix import MatrixPartition, filter_by_tag
from .outcome import Outcome
from .reference_server import ReferenceServer
from .registry import Endpoint, Implementation, Registry, find_endpoint, load_registry
from .runner import ScenarioResult, SuiteReport, run_suite, run_suites
from .transport import Transport

del assertions, envelopes, matrix, registry, transport

__version__ = "0.1.0"


__all__ = [
    "__version__",
    # Configuration
    "HarnessConfig",
    "load_config",
    # Registry and matrix
    "Endpoint",
    "Implementation",
    "Registry",
    "find_endpoint",
    "load_registry",
    "MatrixPartition",
    "filter_by_tag",
    # Fixtures
    "FixtureStore",
    # Transport and endpoints
    "Outcome",
    "Transport",
    "TestEndpoints",
    # Envelopes and proofs
    "BASE_CONTEXT_URL",
    "concat_proof",
    "decode_envelope",
    "envelop",
    "extract_if_enveloped",
    # Assertions
    "check_validity_period",
    "includes_all_required_properties",
    "is_secured",
    "should_be_issued_vc",
    "should_return_result",
    "should_throw_invalid_input",
    # Running
    "ReferenceServer",
    "ScenarioResult",
    "SuiteReport",
    "run_suite",
    "run_suites",
    # Errors
    "AssertionFailure",
    "ConfigurationError",
    "ConformanceError",
    "EnvelopeDecodeError",
    "HTTPError",
    "NoMatchingEndpointError",
    "RedirectNotSupportedError",
    "VerificationError",
]
