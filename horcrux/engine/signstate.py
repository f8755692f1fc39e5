from __future__ import annotations
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging

from ..errors import SignStateError
from ..io.atomic import atomic_write_json

__all__ = ["SignState", "load_sign_state", "load_or_create_sign_state"]

logger = logging.getLogger(__name__)


@dataclass
class SignState:
    """Last height/round/step a key (or key share) signed at.

    Only provisioned here; the signing runtime owns its contents. A fresh record
    is zeroed with empty signature fields.
    """

    height: int = 0
    round: int = 0
    step: int = 0
    ephemeral_public: Optional[str] = None
    signature: Optional[str] = None
    sign_bytes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["signbytes"] = d.pop("sign_bytes")
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignState":
        try:
            return cls(
                height=int(data.get("height", 0)),
                round=int(data.get("round", 0)),
                step=int(data.get("step", 0)),
                ephemeral_public=data.get("ephemeral_public"),
                signature=data.get("signature"),
                sign_bytes=data.get("signbytes"),
            )
        except (TypeError, ValueError) as e:
            raise SignStateError(f"malformed sign state: {e}") from e


def load_sign_state(path: Path | str) -> SignState:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise
    except (OSError, json.JSONDecodeError) as e:
        raise SignStateError(f"failed to read sign state {p}: {e}") from e
    if not isinstance(data, dict):
        raise SignStateError(f"sign state {p} is not a JSON object")
    return SignState.from_dict(data)


def load_or_create_sign_state(path: Path | str) -> SignState:
    """Return the sign state at *path*, writing a zeroed record first if absent."""
    p = Path(path)
    try:
        return load_sign_state(p)
    except FileNotFoundError:
        pass
    state = SignState()
    atomic_write_json(p, state.to_dict(), sort_keys=False, separators=(", ", ": "))
    logger.info("created sign state %s", p)
    return state
