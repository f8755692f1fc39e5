# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest

from horcrux.engine import ops

CHAIN_ID = "horcrux-1"


@pytest.fixture(autouse=True)
def _isolated_home_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Never let a test fall through to the developer's real ~/.horcrux."""
    monkeypatch.delenv("HORCRUX_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "user"))
    yield


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "home"


@pytest.fixture
def cosigner_home(home: Path) -> Path:
    """A home initialized as a 2-of-3 cosigner with peers 2 and 3."""
    ops.init_home(
        home,
        CHAIN_ID,
        "tcp://10.168.0.1:1234",
        cosigner=True,
        peers="tcp://10.168.1.2:2222|2,tcp://10.168.1.3:2222|3",
        threshold=2,
    )
    return home


@pytest.fixture
def single_home(home: Path) -> Path:
    ops.init_home(home, CHAIN_ID, "tcp://10.168.0.1:1234")
    return home
