from __future__ import annotations

import asyncio
import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from hotwire.gateway.contracts import RegisterCommands
from hotwire.utils.logger import Logger


def commands_hash(payloads: List[Dict[str, Any]]) -> str:
    """Content hash of a serialized command set."""
    serialized = json.dumps(payloads, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


class CommandRegistrar:
    """
    Pushes the command set to the gateway, skipping the call when the set has not
    changed since the last successful registration (tracked by a hash file).
    """

    def __init__(self, cache_dir: Path, hash_file: str = "commands.hash", sink: Optional[RegisterCommands] = None):
        self.cache_dir = cache_dir
        self.hash_path = cache_dir / hash_file
        self.sink = sink
        self.logger = Logger("CommandRegistrar")

    async def sync(self, payloads: List[Dict[str, Any]]) -> bool:
        """
        Register ``payloads`` unless they match the persisted hash.
        Returns True when the external registration call was made and succeeded.
        """
        if self.sink is None:
            self.logger.debug("Client does not accept command registration. Skipping.")
            return False

        current_hash = commands_hash(payloads)

        existing_hash = await asyncio.to_thread(self._read_hash)
        if existing_hash == current_hash:
            self.logger.info("Commands have not changed. Skipping registration.")
            return False

        try:
            await self.sink(payloads)
        except Exception as exc:
            self.logger.error("Failed to register commands", exc)
            return False

        self.logger.info(f"Successfully registered {len(payloads)} commands.")

        try:
            await asyncio.to_thread(self._write_hash, current_hash)
            self.logger.info(f"Wrote command hash to {self.hash_path}")
        except OSError as exc:
            self.logger.warning(f"Could not write command cache file {self.hash_path}: {exc}")

        return True

    def _read_hash(self) -> Optional[str]:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            return self.hash_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            self.logger.warning(f"Could not read command cache file: {exc}")
            return None

    def _write_hash(self, value: str) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.hash_path.write_text(value, encoding="utf-8")
