"""horcrux: signer configuration public API surface.

Only `horcrux` and `horcrux.errors` are public. Everything else is internal.
This module also resolves `__version__` across installs.
"""
from __future__ import annotations

from typing import Any as _Any
from . import errors as errors  # re-export for star-import; noqa: F401

from importlib.metadata import version as _pkg_version, PackageNotFoundError


def _version_from_metadata() -> str | None:
    try:
        return _pkg_version("horcrux")
    except PackageNotFoundError:
        return None


__version__ = _version_from_metadata() or "0+unknown"


def __getattr__(name: str) -> _Any:  # PEP 562 lazy exports to avoid import-time cycles
    if name in ("validate_config", "validate_config_verbose", "validate_config_api"):
        # `configs` is a top-level package, not `horcrux.configs`
        from configs import validate as _validate

        globals()[name] = getattr(_validate, name)
        return globals()[name]
    if name in ("ChainNode", "CosignerPeer", "CosignerConfig", "Config", "NodeConfig", "CosignerDescriptor"):
        from .engine import types as _types

        globals()[name] = getattr(_types, name)
        return globals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return list(__all__)


# Star-export surface (deterministic ordering).
__all__ = [
    "ChainNode",
    "Config",
    "CosignerConfig",
    "CosignerDescriptor",
    "CosignerPeer",
    "NodeConfig",
    "__version__",
    "errors",
    "validate_config",
    "validate_config_api",
    "validate_config_verbose",
]
