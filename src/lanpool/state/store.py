"""
Persisted state storage.

One JSON file holds the last network fingerprint, pool and VIP. Writes go to
a temporary file in the same directory which then replaces the old file, so
a concurrent or interrupted run never reads a partial document.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from lanpool.exceptions import StateStoreError
from lanpool.models.network import AddressPool, NetworkContext
from lanpool.models.state import PersistedState, PoolRecord
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SSZ``."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    return now.isoformat().replace("+00:00", "Z")


def build_state(
    context: NetworkContext,
    pool: AddressPool,
    previous: PersistedState | None = None,
) -> PersistedState:
    """
    Build the record for a finished run.

    Extra keys of the previous record are carried over.
    """
    extra = dict(previous.model_extra or {}) if previous is not None else {}
    return PersistedState(
        iface=context.iface,
        cidr=context.cidr,
        addr=str(context.address) if context.address is not None else "",
        gw=context.gateway,
        mtu=context.mtu,
        link_type=context.link_class.value,
        ts=utc_timestamp(),
        metallb_pool=PoolRecord(start=str(pool.start), end=str(pool.end)),
        traefik_ip=str(pool.vip),
        **extra,
    )


class StateStore:
    """Loads and atomically saves the state file."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def load(self) -> PersistedState | None:
        """
        Read the previous state.

        Returns:
            The state, or None if the file is missing or cannot be parsed.
        """
        if not self.path.exists():
            logger.debug(f"No previous state at {self.path}")
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            state = PersistedState.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Unable to parse previous state file {self.path}: {e}")
            return None

        logger.debug(f"Loaded previous state from {self.path} (ts={state.ts or '?'})")
        return state

    def save(self, state: PersistedState) -> None:
        """
        Atomically replace the state file.

        Raises:
            StateStoreError: If the file cannot be written.
        """
        payload = json.dumps(state.model_dump(mode="json", exclude_none=True), indent=2)

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise StateStoreError(f"Failed to write state file {self.path}: {e}")
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.debug(f"State written to {self.path}")

    def clear(self) -> bool:
        """Remove the state file. Returns True if a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateStoreError(f"Failed to remove state file {self.path}: {e}")
        return True
