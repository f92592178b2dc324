"""Durable storage for the relay watermark.

The watermark is the enqueue time (epoch milliseconds) of the last accepted
inbound message. It is stored as a single text-encoded integer:

    ./.last -> "1736942400123"

Writes go to a temp file first and are moved into place with os.replace()
so a crash mid-write never leaves a truncated value behind.
"""

import logging
import os
import time
from pathlib import Path
from typing import Protocol

from hubrelay.core.errors import WatermarkPersistenceError

logger = logging.getLogger(__name__)

# Watermark value meaning "no message has been accepted yet"
UNSET = -1


class WatermarkStore(Protocol):
    """Single-value durable store for the watermark.

    Contract: ``load()`` returns UNSET instead of raising when nothing usable is
    stored; ``save()`` raises WatermarkPersistenceError when it cannot persist.
    """

    def load(self) -> int:
        ...

    def save(self, value: int) -> None:
        ...


class FileWatermarkStore:
    """Watermark store backed by a local text file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> int:
        """Read the persisted watermark, or UNSET if missing, empty or unparseable."""
        try:
            raw = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            logger.info(
                "No stored watermark, starting from scratch",
                extra={"watermark_path": str(self.path)},
            )
            return UNSET
        except OSError as e:
            logger.warning(
                f"Failed to read watermark file {self.path}: {e}, resetting",
                extra={"watermark_path": str(self.path)},
            )
            return UNSET

        if not raw:
            return UNSET
        try:
            value = int(raw)
        except ValueError:
            logger.warning(
                f"Malformed watermark in {self.path}: {raw[:32]!r}, resetting",
                extra={"watermark_path": str(self.path)},
            )
            return UNSET

        logger.info(
            "Loaded stored watermark",
            extra={"watermark_path": str(self.path), "watermark": value},
        )
        return value

    def save(self, value: int) -> None:
        """Atomic write: write to temp file then os.replace().

        On Windows, os.replace() can fail with PermissionError when another
        process briefly locks the target file, so it is retried a few times.

        Raises:
            WatermarkPersistenceError: If the value could not be written
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(str(value))
                f.flush()
                os.fsync(f.fileno())
            self._replace(tmp_path)
        except OSError as e:
            logger.error(
                "Failed to persist watermark",
                extra={"watermark_path": str(self.path), "watermark": value, "error": str(e)},
            )
            raise WatermarkPersistenceError(str(self.path), value, cause=e) from e

    def _replace(self, tmp_path: Path) -> None:
        max_retries = 5
        for attempt in range(max_retries):
            try:
                os.replace(str(tmp_path), str(self.path))
                return
            except PermissionError:
                if attempt == max_retries - 1:
                    raise
                delay = 0.05 * (2 ** attempt)  # 50ms, 100ms, 200ms, 400ms
                logger.debug(
                    f"os.replace failed for {self.path.name} "
                    f"(attempt {attempt + 1}/{max_retries}), retrying in {delay * 1000:.0f}ms"
                )
                time.sleep(delay)


class InMemoryWatermarkStore:
    """Non-durable store for tests and dry runs."""

    def __init__(self, initial: int = UNSET) -> None:
        self.value = initial
        self.saves: list[int] = []

    def load(self) -> int:
        return self.value

    def save(self, value: int) -> None:
        self.value = value
        self.saves.append(value)


__all__ = [
    "UNSET",
    "WatermarkStore",
    "FileWatermarkStore",
    "InMemoryWatermarkStore",
]
