"""Development-only model reloading.

Polls the models tree of every module on a fixed interval, comparing
file mtimes against the last snapshot. Runs as a background task in the
server's lifespan, on the same event loop as request handling, so each
reload is a single-key replacement in the registry with no locking.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

import anyio
import anyio.to_thread

from roost.modules.registry import ModelRegistry, iter_model_files

logger = logging.getLogger("roost.models")


class ModelWatcher:
    """Lightweight polling watcher over one or more model registries."""

    def __init__(self, registries: Sequence[ModelRegistry], *, interval: float = 1.0) -> None:
        self._registries = tuple(registries)
        self._interval = interval
        self._snapshots: list[dict[Path, float]] = [self._scan(r) for r in self._registries]

    @staticmethod
    def _scan(registry: ModelRegistry) -> dict[Path, float]:
        snapshot: dict[Path, float] = {}
        try:
            files = list(iter_model_files(registry.models_dir))
        except OSError:
            return snapshot
        for file in files:
            try:
                snapshot[file] = file.stat().st_mtime
            except FileNotFoundError:
                continue
        return snapshot

    async def poll(self) -> list[Path]:
        """Check every registry once and reload what changed.

        The tree walk runs in a worker thread so polling never blocks
        requests. New and modified files are (re)loaded, then their
        ``on_schedule_init`` hooks run. Deleted files are unregistered.
        Returns the files that changed.
        """
        changed: list[Path] = []
        for index, registry in enumerate(self._registries):
            previous = self._snapshots[index]
            current = await anyio.to_thread.run_sync(self._scan, registry)
            self._snapshots[index] = current

            for file in previous.keys() - current.keys():
                registry.discard(file)
                changed.append(file)

            for file, mtime in current.items():
                if previous.get(file) == mtime:
                    continue
                changed.append(file)
                path = registry.reload(file)
                if path is not None:
                    await registry.run_schedule_init([path])
        return changed

    async def run(self) -> None:
        """Poll until cancelled."""
        logger.info("Watching models for changes every %ss", self._interval)
        while True:
            await anyio.sleep(self._interval)
            try:
                await self.poll()
            except Exception:
                logger.exception("Model watcher poll failed")
