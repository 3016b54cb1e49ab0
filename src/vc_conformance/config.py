"""Harness configuration.

All environment lookups happen here, once, when the configuration is loaded.
The rest of the harness receives a :class:`HarnessConfig` explicitly.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://localhost:40443/id"
DEFAULT_KEY_SEED = "z1AZK4h5w5YZkKYEgqtcFfvSbWQ3tZ3ZFgmLsXMZsTVoeK7"
DEFAULT_FIXTURES_DIR = Path(__file__).parent / "fixtures" / "input"


@dataclass(frozen=True)
class HarnessConfig:
    """Immutable settings for one harness run.

    Attributes:
        base_url: Substituted for ``{base_url}`` in registry endpoint URLs
        key_seed: Seed for the local proof-generation key
        capability_seeds: Named key seeds for capability invocation auth
        client_secrets: Named tokens and client secrets for HTTPS auth
        timeout: Request timeout in seconds; None means unbounded
        fixtures_dir: Directory holding the fixture corpus
        skew_days: Distance from now used by the validity period check
    """

    base_url: str = DEFAULT_BASE_URL
    key_seed: str = DEFAULT_KEY_SEED
    capability_seeds: Mapping[str, str] = field(default_factory=dict)
    client_secrets: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    fixtures_dir: Path = DEFAULT_FIXTURES_DIR
    skew_days: int = 2

    def capability_seed(self, name: str) -> str:
        """Look up a capability key seed by its variable name.

        Raises:
            ConfigurationError: If no seed with that name was configured
        """
        try:
            return self.capability_seeds[name]
        except KeyError:
            raise ConfigurationError(f"Capability key seed {name!r} is not configured") from None

    def client_secret(self, name: str) -> str:
        """Look up a bearer token or client secret by its variable name.

        Raises:
            ConfigurationError: If no secret with that name was configured
        """
        try:
            return self.client_secrets[name]
        except KeyError:
            raise ConfigurationError(f"Client secret {name!r} is not configured") from None


def _parse_timeout(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigurationError(f"HTTP_TIMEOUT must be a number, got {value!r}") from None
    return timeout if timeout > 0 else None


def load_config(environ: Optional[Mapping[str, str]] = None) -> HarnessConfig:
    """Build a configuration from environment variables.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``

    Returns:
        HarnessConfig with defaults applied for anything unset

    Raises:
        ConfigurationError: If a variable holds an unparseable value
    """
    env = dict(os.environ if environ is None else environ)

    # Snapshot capability seeds and secrets by naming convention
    capability_seeds = {k: v for k, v in env.items() if "KEY_SEED" in k and k != "TEST_KEY_SEED"}
    client_secrets = {
        k: v for k, v in env.items() if k.endswith("_CLIENT_SECRET") or k.endswith("_TOKEN")
    }

    skew = env.get("VALIDITY_SKEW_DAYS", "2")
    try:
        skew_days = int(skew)
    except ValueError:
        raise ConfigurationError(f"VALIDITY_SKEW_DAYS must be an integer, got {skew!r}") from None
    if skew_days < 1:
        raise ConfigurationError("VALIDITY_SKEW_DAYS must be at least 1")

    fixtures_dir = env.get("FIXTURES_DIR")

    return HarnessConfig(
        base_url=env.get("BASE_URL") or DEFAULT_BASE_URL,
        key_seed=env.get("TEST_KEY_SEED") or DEFAULT_KEY_SEED,
        capability_seeds=capability_seeds,
        client_secrets=client_secrets,
        timeout=_parse_timeout(env.get("HTTP_TIMEOUT")),
        fixtures_dir=Path(fixtures_dir) if fixtures_dir else DEFAULT_FIXTURES_DIR,
        skew_days=skew_days,
    )
