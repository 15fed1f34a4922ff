"""Tests for the development model watcher."""

import os
import threading

from conftest import write
from roost.modules.registry import ModelRegistry
from roost.modules.watcher import ModelWatcher

MODEL = """\
    class Model:
        inits = 0

        def on_schedule_init(self):
            type(self).inits += 1

        def render(self, request):
            return {"value": VALUE}
"""


def _bump_mtime(path, seconds: int = 5) -> None:
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + seconds))


class TestModelWatcher:
    async def test_no_changes_no_reloads(self, tmp_path) -> None:
        models = tmp_path / "models"
        write(models / "x" / "model.py", MODEL.replace("VALUE", "1"))
        registry = ModelRegistry(models, "shop")
        registry.load_all()

        watcher = ModelWatcher([registry], interval=0.01)
        assert await watcher.poll() == []

    async def test_modified_file_is_reloaded_and_initialized(self, tmp_path) -> None:
        models = tmp_path / "models"
        file = write(models / "x" / "model.py", MODEL.replace("VALUE", "1"))
        registry = ModelRegistry(models, "shop")
        registry.load_all()
        watcher = ModelWatcher([registry], interval=0.01)

        write(file, MODEL.replace("VALUE", "2"))
        _bump_mtime(file)
        assert await watcher.poll() == [file]
        model = registry.get("/x")
        assert model.render(None) == {"value": 2}
        assert type(model).inits == 1

    async def test_new_file_is_registered(self, tmp_path) -> None:
        models = tmp_path / "models"
        models.mkdir()
        registry = ModelRegistry(models, "shop")
        registry.load_all()
        watcher = ModelWatcher([registry], interval=0.01)

        write(models / "fresh" / "model.py", MODEL.replace("VALUE", "3"))
        await watcher.poll()
        assert "/fresh" in registry

    async def test_deleted_file_is_unregistered(self, tmp_path) -> None:
        models = tmp_path / "models"
        file = write(models / "x" / "model.py", MODEL.replace("VALUE", "1"))
        registry = ModelRegistry(models, "shop")
        registry.load_all()
        watcher = ModelWatcher([registry], interval=0.01)

        file.unlink()
        await watcher.poll()
        assert "/x" not in registry

    async def test_scan_runs_off_the_event_loop_thread(self, tmp_path) -> None:
        models = tmp_path / "models"
        write(models / "x" / "model.py", MODEL.replace("VALUE", "1"))
        registry = ModelRegistry(models, "shop")
        registry.load_all()
        watcher = ModelWatcher([registry], interval=0.01)

        scan_threads: list[int] = []
        original_scan = ModelWatcher._scan

        def recording_scan(reg):
            scan_threads.append(threading.get_ident())
            return original_scan(reg)

        watcher._scan = recording_scan
        assert await watcher.poll() == []
        assert scan_threads
        assert threading.get_ident() not in scan_threads
