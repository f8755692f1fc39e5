from __future__ import annotations

import errno
import json
import os
import random
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

__all__ = [
    "atomic_write_text",
    "atomic_write_bytes",
    "atomic_write_json",
    "atomic_replace",
]

# Config and sign-state files are operator-readable.
_DEFAULT_PERMS = 0o644


def _fsync_dir(path: Path) -> None:
    """Best-effort directory fsync; some platforms refuse fsync on directories."""
    try:
        fd = os.open(str(path), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def atomic_replace(tmp_path: Path, final_path: Path, *, retries: int = 20, backoff_ms: int = 10) -> None:
    """Move *tmp_path* over *final_path* in one step.

    Readers see either the old file or the new one, never a partial write. Retries
    on transient sharing/permission errors with jittered backoff, removes the temp
    file if the replace never succeeds, then re-raises the last error.
    """
    final_path.parent.mkdir(parents=True, exist_ok=True)
    last_err: Optional[OSError] = None
    delay = backoff_ms / 1000.0

    for _ in range(retries):
        try:
            os.replace(str(tmp_path), str(final_path))
            _fsync_dir(final_path.parent)
            return
        except PermissionError as e:
            last_err = e
        except OSError as e:
            last_err = e
            if e.errno not in {errno.EACCES, errno.EPERM, errno.EBUSY}:
                break
        time.sleep(delay + random.uniform(0, delay * 0.25))
        delay = min(delay * 1.5, 0.25)

    try:
        if tmp_path.exists():
            tmp_path.unlink()
    finally:
        if last_err:
            raise last_err


def _make_tmp(final_path: Path) -> Path:
    """Create a sibling temp file so the final rename stays on one filesystem."""
    final_path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        prefix=final_path.name + ".",
        dir=str(final_path.parent),
        delete=False,
    ) as tf:
        return Path(tf.name)


def atomic_write_bytes(final_path: Path | str, data: bytes) -> None:
    """Atomically write bytes to *final_path*.

    Keeps the mode of an existing target, otherwise applies 0644.
    """
    final = Path(final_path)
    tmp = _make_tmp(final)
    try:
        with open(tmp, "wb", buffering=0) as f:
            f.write(data)
            os.fsync(f.fileno())
        try:
            mode = final.stat().st_mode
        except FileNotFoundError:
            mode = _DEFAULT_PERMS
        os.chmod(tmp, mode)
        atomic_replace(tmp, final)
    except BaseException:
        try:
            if tmp.exists():
                tmp.unlink()
        finally:
            raise


def atomic_write_text(final_path: Path | str, text: str, *, encoding: str = "utf-8") -> None:
    """Atomically write text with LF line endings."""
    atomic_write_bytes(final_path, text.replace("\r\n", "\n").encode(encoding))


def atomic_write_json(
    final_path: Path | str,
    obj: Any,
    *,
    sort_keys: bool = True,
    separators: tuple[str, str] = (",", ":"),
) -> None:
    payload = json.dumps(obj, sort_keys=sort_keys, separators=separators, ensure_ascii=False)
    atomic_write_text(final_path, payload + "\n")
