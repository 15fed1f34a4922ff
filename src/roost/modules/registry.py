"""Model discovery, loading and invocation for one module.

The models tree mirrors the URL structure: the directory holding a
model file names the page it serves, the file name itself is ignored.

::

    models/
        items/index/model.py     -> /items/index
        post/order/handler.py    -> /post/order
        model.py                 -> /

Each file is loaded on its own. A file that fails to import, doesn't
export ``Model``, or whose ``Model()`` raises is logged and skipped; the
rest of the walk continues.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio

from roost._internal.invoke import invoke
from roost.errors import GatewayTimeout, HTTPError, ModelLoadError
from roost.modules.environment import load_sidecar, merge_env, sidecar_path
from roost.modules.models import HasScheduleInit, HasSetParams, Model, ModelParams

if TYPE_CHECKING:
    from roost.http.request import Request

logger = logging.getLogger("roost.models")

MODEL_SUFFIX = ".py"


def iter_model_files(root: Path) -> Iterator[Path]:
    """Yield model source files below *root*, depth first, sorted.

    Skips ``__pycache__`` and dotted entries, stub files and anything
    that isn't a ``.py`` file. ``_``-prefixed files (``__init__.py``,
    private helpers) are not models.

    Raises:
        OSError: *root* itself can't be listed. Unreadable subdirectories
            are logged and skipped.
    """
    yield from _walk(root, top=True)


def _walk(directory: Path, *, top: bool) -> Iterator[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError:
        if top:
            raise
        logger.warning("Could not read model directory %s", directory)
        return

    for entry in entries:
        if entry.name.startswith(".") or entry.name == "__pycache__":
            continue
        if entry.is_dir():
            yield from _walk(entry, top=False)
        elif entry.suffix == MODEL_SUFFIX and not entry.name.startswith("_"):
            yield entry


class ModelRegistry:
    """Mapping of module-relative path to loaded model instance.

    Built once at startup by ``load_all()``. In development the watcher
    calls ``reload()`` for single files; each reload replaces one key.
    """

    __slots__ = ("_files", "_models", "_models_dir", "_module_name")

    def __init__(self, models_dir: Path, module_name: str) -> None:
        self._models_dir = models_dir
        self._module_name = module_name
        self._models: dict[str, Any] = {}
        self._files: dict[Path, str] = {}

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    def __contains__(self, path: object) -> bool:
        return path in self._models

    def __len__(self) -> int:
        return len(self._models)

    def get(self, path: str) -> Any | None:
        return self._models.get(path)

    @property
    def paths(self) -> tuple[str, ...]:
        """Registered paths, sorted."""
        return tuple(sorted(self._models))

    @property
    def files(self) -> Mapping[Path, str]:
        """Source file -> registered path, for every loaded model."""
        return dict(self._files)

    def path_for(self, file: Path) -> str:
        """Module-relative path served by model *file*."""
        parent = file.parent.relative_to(self._models_dir)
        if parent == Path("."):
            return "/"
        return "/" + parent.as_posix()

    # -- Loading --

    def load_all(self) -> int:
        """Walk the models tree and register every loadable model.

        Returns the number of models registered. An unreadable or
        missing models directory is logged and leaves the registry
        empty.
        """
        try:
            files = list(iter_model_files(self._models_dir))
        except OSError as exc:
            logger.warning(
                "Could not read models directory %s for module %s: %s",
                self._models_dir, self._module_name, exc,
            )
            return 0

        for file in files:
            try:
                self.load_file(file)
            except ModelLoadError as exc:
                logger.warning("%s", exc)
        return len(self._models)

    def load_file(self, file: Path) -> str:
        """Import *file*, instantiate its ``Model`` and register it.

        Returns the path the model was registered under.

        Raises:
            ModelLoadError: Import, lookup or instantiation failed.
        """
        path = self.path_for(file)
        name = self._import_name(file)
        spec = importlib.util.spec_from_file_location(name, file)
        if spec is None or spec.loader is None:
            raise ModelLoadError(path, f"{file} is not importable")

        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
            factory = getattr(module, "Model", None)
            if factory is None:
                raise ModelLoadError(path, f"{file.name} does not export Model")
            instance = factory()
        except ModelLoadError:
            sys.modules.pop(name, None)
            raise
        except Exception as exc:
            sys.modules.pop(name, None)
            raise ModelLoadError(path, f"{type(exc).__name__}: {exc}") from exc

        if not isinstance(instance, Model):
            sys.modules.pop(name, None)
            raise ModelLoadError(path, "Model has no render() method")

        self._models[path] = instance
        self._files[file] = path
        logger.debug("Loaded model %s from %s", path, file)
        return path

    def reload(self, file: Path) -> str | None:
        """Drop the cached code for *file* and load it again.

        On failure the previously loaded model, if any, stays registered.
        Returns the reloaded path, or ``None`` if loading failed.
        """
        sys.modules.pop(self._import_name(file), None)
        # Bytecode is keyed on whole-second mtime and size; a quick edit can match both.
        try:
            Path(importlib.util.cache_from_source(str(file))).unlink(missing_ok=True)
        except OSError as exc:
            logger.debug("Could not drop bytecode cache for %s: %s", file, exc)
        try:
            path = self.load_file(file)
        except ModelLoadError as exc:
            logger.warning("%s", exc)
            return None
        logger.info("Reloaded model %s", path)
        return path

    def discard(self, file: Path) -> None:
        """Unregister the model loaded from *file* (the file was deleted)."""
        path = self._files.pop(file, None)
        if path is None:
            return
        sys.modules.pop(self._import_name(file), None)
        if path not in self._files.values():
            self._models.pop(path, None)
            logger.info("Removed model %s", path)

    def _import_name(self, file: Path) -> str:
        relative = file.relative_to(self._models_dir).with_suffix("")
        dotted = "__".join(relative.parts)
        return f"_roost_model_{self._module_name}_{dotted}"

    async def run_schedule_init(self, paths: Sequence[str] | None = None) -> None:
        """Call ``on_schedule_init`` on every model that supports it.

        A failing hook is logged; the other hooks still run.
        """
        for path in paths if paths is not None else self.paths:
            model = self._models.get(path)
            if not isinstance(model, HasScheduleInit):
                continue
            try:
                await invoke(model.on_schedule_init)
            except Exception:
                logger.exception("on_schedule_init failed for model %s", path)

    # -- Invocation --

    async def invoke_models(
        self,
        request: Request,
        env: dict[str, Any],
        page_path: str,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Run every model listed in ``env["models"]`` and merge the results.

        Unknown paths are logged and skipped. Models that accept
        ``set_params`` get the page URLs first; a model serving another
        path has its own sidecar merged before anything renders. Renders
        then run concurrently and their outputs are merged in list order,
        so the last listed model wins on scalar keys.

        Raises:
            GatewayTimeout: *timeout* is set and the renders didn't all
                finish in time.
        """
        selected: list[tuple[str, Any]] = []
        for model_path in list(env.get("models") or ()):
            model = self._models.get(model_path)
            if model is None:
                logger.warning("Model %s not found for page %s", model_path, page_path)
                continue
            if isinstance(model, HasSetParams):
                model.set_params(ModelParams(
                    base_url=env["baseurl"],
                    full_url=env["baseurl"] + page_path[1:],
                ))
            if model_path != page_path:
                merge_env(env, await load_sidecar(sidecar_path(self._models_dir, model_path)))
            selected.append((model_path, model))

        if not selected:
            return env

        results: list[Mapping[str, Any] | None] = [None] * len(selected)

        async def _render(index: int, model: Any) -> None:
            results[index] = await invoke(model.render, request)

        try:
            with anyio.fail_after(timeout):
                async with anyio.create_task_group() as tg:
                    for index, (_, model) in enumerate(selected):
                        tg.start_soon(_render, index, model)
        except TimeoutError as exc:
            names = ", ".join(p for p, _ in selected)
            logger.warning("Models %s timed out after %ss on page %s", names, timeout, page_path)
            raise GatewayTimeout(f"Models did not finish in time: {names}") from exc
        except ExceptionGroup as group:
            raise _first_error(group) from group

        for result in results:
            merge_env(env, result)
        return env


def _first_error(group: BaseExceptionGroup) -> BaseException:
    """Pick the exception to surface from a failed task group.

    An ``HTTPError`` raised by a model keeps its status; otherwise the
    first leaf exception propagates and becomes a 500.
    """
    leaves = list(_leaves(group))
    for exc in leaves:
        if isinstance(exc, HTTPError):
            return exc
    return leaves[0]


def _leaves(group: BaseExceptionGroup) -> Iterator[BaseException]:
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            yield from _leaves(exc)
        else:
            yield exc
