"""
SDK version and a report of the libraries that decide hash output.

Signing hashes depend on msgpack and the eth-* encoders, so bug reports are
far more useful with their versions attached (see ``hlx version``).
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from importlib import metadata
from typing import Dict, Optional, Tuple

# Bump this when publishing
__version__ = "0.3.0"

HASHING_DISTRIBUTIONS: Tuple[str, ...] = ("msgpack", "eth-abi", "eth-account", "eth-keys", "eth-utils", "httpx")


def _dist_version(name: str) -> Optional[str]:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


@dataclass(frozen=True)
class VersionInfo:
    sdk: str
    python: str
    libraries: Dict[str, Optional[str]] = field(default_factory=dict)

    def __str__(self) -> str:
        libs = ", ".join(f"{k} {v or 'missing'}" for k, v in self.libraries.items())
        return f"{self.sdk} (python {self.python}; {libs})" if libs else self.sdk


def version_info() -> VersionInfo:
    return VersionInfo(
        sdk=__version__,
        python=platform.python_version(),
        libraries={name: _dist_version(name) for name in HASHING_DISTRIBUTIONS},
    )


def version() -> str:
    """e.g. '0.3.0 (python 3.12.1; msgpack 1.0.8, eth-abi 5.1.0, ...)'."""
    return str(version_info())


__all__ = ["__version__", "VersionInfo", "version_info", "version"]
