"""Fixture corpus of positive and negative input documents.

Documents live under ``input/`` as JSON files. :class:`FixtureStore` caches
parsed documents and hands out a deep copy on every load, so a scenario that
edits its copy can never leak changes into another scenario.
"""

import copy
import json
from pathlib import Path
from typing import Any, Optional, Union

from ..errors import ConfigurationError

INPUT_DIR = Path(__file__).parent / "input"


class FixtureStore:
    """Read-only store of JSON fixtures keyed by path relative to the store."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else INPUT_DIR
        self._cache: dict[str, Any] = {}

    def _resolve(self, name: str) -> Path:
        if not name.endswith(".json"):
            name = f"{name}.json"
        path = (self.base_dir / name).resolve()
        if self.base_dir.resolve() not in path.parents:
            raise ConfigurationError(f"Fixture {name!r} is outside {self.base_dir}")
        return path

    def load(self, name: str) -> Any:
        """Load a fixture by file name.

        Args:
            name: File name relative to the store, with or without ``.json``

        Returns:
            A fresh deep copy of the parsed document

        Raises:
            ConfigurationError: If the fixture does not exist or is not valid JSON
        """
        key = name if name.endswith(".json") else f"{name}.json"
        if key not in self._cache:
            path = self._resolve(key)
            try:
                with open(path, encoding="utf-8") as f:
                    self._cache[key] = json.load(f)
            except FileNotFoundError:
                raise ConfigurationError(f"Unknown fixture {key!r}") from None
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Fixture {key!r} is not valid JSON: {e}") from e
        return copy.deepcopy(self._cache[key])

    def __call__(self, name: str) -> Any:
        return self.load(name)

    def names(self) -> list[str]:
        """List the fixture names available in the store, including subdirectories."""
        return sorted(p.relative_to(self.base_dir).as_posix() for p in self.base_dir.rglob("*.json"))
