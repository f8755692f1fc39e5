import os
from pathlib import Path
from typing import Mapping, Optional, Tuple

CONFIG_FILE = "config.yaml"
STATE_DIR = "state"
SHARE_FILE = "share.json"
DEFAULT_HOME_NAME = ".horcrux"

PRIV_VALIDATOR_STATE = "{chain_id}_priv_validator_state.json"
SHARE_SIGN_STATE = "{chain_id}_share_sign_state.json"


def resolve_home(explicit: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Tuple[Path, str]:
    """
    Resolve the horcrux home directory with the following precedence:
    1) explicit --home
    2) HORCRUX_HOME
    3) ~/.horcrux

    Returns (path, source_tag); source tags are 'explicit', 'env:HORCRUX_HOME', 'default'.
    Nothing is created on disk.
    """
    if explicit:
        return Path(os.path.expandvars(explicit)).expanduser(), "explicit"

    env = os.environ if env is None else env
    v = env.get("HORCRUX_HOME")
    if v:
        return Path(os.path.expandvars(v)).expanduser(), "env:HORCRUX_HOME"

    return Path.home() / DEFAULT_HOME_NAME, "default"


def config_path(home: Path | str) -> Path:
    return Path(home) / CONFIG_FILE


def state_dir(home: Path | str) -> Path:
    return Path(home) / STATE_DIR


def share_path(home: Path | str) -> Path:
    return Path(home) / SHARE_FILE


def priv_validator_state_path(home: Path | str, chain_id: str) -> Path:
    return state_dir(home) / PRIV_VALIDATOR_STATE.format(chain_id=chain_id)


def share_sign_state_path(home: Path | str, chain_id: str) -> Path:
    return state_dir(home) / SHARE_SIGN_STATE.format(chain_id=chain_id)


def is_populated(home: Path | str) -> bool:
    """True when *home* exists and is a file or a non-empty directory."""
    p = Path(home)
    if not p.exists():
        return False
    if not p.is_dir():
        return True
    return any(p.iterdir())
