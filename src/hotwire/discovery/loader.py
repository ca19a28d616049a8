from __future__ import annotations

import asyncio
import importlib.machinery
import importlib.util
import itertools
import linecache
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from hotwire.core.component import Component, is_component_type
from hotwire.core.naming import module_name_for_path
from hotwire.utils.diagnostics import Diagnostic
from hotwire.utils.logger import Logger

T = TypeVar("T")

FileFilter = Callable[[str], bool]

_MISSING = object()
_import_versions = itertools.count(1)
# Resolved file path -> module name of its latest dynamic import.
_latest_imports: Dict[str, str] = {}


def suffix_filter(suffixes: Sequence[str]) -> FileFilter:
    """
    Accept file names ending in one of ``suffixes``. Private (``_x.py``) and hidden
    (``.x.py``) files are never definitions.
    """
    normalized = tuple(s.lower() for s in suffixes)

    def accept(file_name: str) -> bool:
        if file_name.startswith(("_", ".")):
            return False
        return file_name.lower().endswith(normalized)

    return accept


def import_file(file_path: Path, namespace: str = "module") -> ModuleType:
    """
    Import ``file_path`` as a brand new module, ignoring any earlier import of it.

    The bytecode cached for the file is removed first: two writes inside the same
    second with the same size would otherwise be served from a stale .pyc.
    """
    resolved = file_path.resolve()
    module_name = module_name_for_path(resolved, namespace, next(_import_versions))

    importlib.invalidate_caches()
    # explicit loader: definition suffixes are configurable and need not be .py
    loader = importlib.machinery.SourceFileLoader(module_name, str(resolved))
    spec = importlib.util.spec_from_file_location(module_name, resolved, loader=loader)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot build an import spec for '{resolved}'.")

    _remove_cached_bytecode(resolved)
    module = importlib.util.module_from_spec(spec)

    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise

    previous = _latest_imports.get(str(resolved))
    if previous is not None:
        sys.modules.pop(previous, None)
    _latest_imports[str(resolved)] = module_name

    linecache.checkcache(str(resolved))
    return module


def _remove_cached_bytecode(source_path: Path) -> None:
    try:
        cached_file = Path(importlib.util.cache_from_source(str(source_path)))
    except NotImplementedError:
        return

    try:
        cached_file.unlink(missing_ok=True)
    except OSError:
        return


def default_export(module: ModuleType, export_name: str = "default") -> Any:
    """Return the module's default export, or raise LookupError when it has none."""
    value = getattr(module, export_name, _MISSING)
    if value is _MISSING:
        raise LookupError(f"Module '{module.__file__}' has no '{export_name}' export.")
    return value


@dataclass(frozen=True)
class LoadedExport(Generic[T]):
    """One default export together with the file it came from."""

    path: Path
    value: T


class Loader(Generic[T]):
    """
    Recursively imports every matching file under ``directory`` and collects default exports.

    A file that fails to import is logged, recorded in ``diagnostics`` and skipped; it
    never aborts the batch. Results follow directory traversal order (sorted per level).
    """

    def __init__(
        self,
        directory: Path,
        filter: Optional[FileFilter] = None,
        logger_context: str = "Loader",
        export_name: str = "default",
    ):
        self.directory = directory
        self.filter = filter or (lambda _name: True)
        self.export_name = export_name
        self.logger = Logger(logger_context)
        self.namespace = logger_context.lower()
        self.diagnostics: List[Diagnostic] = []

    async def load(self) -> List[T]:
        return [item.value for item in await self.load_with_sources()]

    async def load_with_sources(self) -> List[LoadedExport[T]]:
        self.diagnostics = []

        if not self.directory.is_dir():
            self.logger.warning(f"Directory {self.directory} does not exist. Nothing to load.")
            return []

        resolved_paths = await asyncio.to_thread(self.resolve_paths)

        loaded: List[LoadedExport[T]] = []
        for resolved_path in resolved_paths:
            try:
                module = import_file(resolved_path, self.namespace)
                value = default_export(module, self.export_name)
            except LookupError as exc:
                self.logger.warning(str(exc))
                self._record(resolved_path, "ERR_NO_DEFAULT_EXPORT", str(exc), severity="warning")
                continue
            except Exception as exc:
                self.logger.error(f"Error loading module from {resolved_path}", exc)
                self._record(resolved_path, "ERR_IMPORT_FAILURE", f"{type(exc).__name__}: {exc}")
                continue

            loaded.append(LoadedExport(path=resolved_path, value=value))

        return loaded

    def resolve_paths(self) -> List[Path]:
        """
        Walk ``directory`` and return real paths of matching files. Symbolic links to
        files are resolved to their target; linked directories are not descended into.
        """
        resolved: List[Path] = []

        for root, dirs, files in os.walk(self.directory):
            dirs.sort()
            for file_name in sorted(files):
                if not self.filter(file_name):
                    continue

                full_path = Path(root) / file_name
                try:
                    if full_path.is_symlink():
                        resolved.append(full_path.resolve(strict=True))
                    elif full_path.is_file():
                        resolved.append(full_path)
                except OSError as exc:
                    self.logger.error(f"Error processing file {full_path}", exc)
                    self._record(full_path, "ERR_PATH_RESOLUTION", str(exc))

        return resolved

    def _record(self, path: Path, code: str, message: str, severity: str = "error") -> None:
        self.diagnostics.append(
            Diagnostic(file_path=str(path), error_code=code, message=message, severity=severity)
        )


async def discover_components(
    directory: Path,
    suffixes: Sequence[str] = (".py",),
    export_name: str = "default",
    diagnostics: Optional[List[Diagnostic]] = None,
) -> List[type[Component]]:
    """
    Load every file under ``directory`` whose default export is a component class.
    Problems are appended to ``diagnostics`` when a list is given.
    """
    loader: Loader[Any] = Loader(
        directory,
        filter=suffix_filter(suffixes),
        logger_context="ComponentLoader",
        export_name=export_name,
    )

    components: List[type[Component]] = []
    for item in await loader.load_with_sources():
        if not is_component_type(item.value):
            loader.logger.warning(f"Skipped {item.path}: does not export a class extending Component.")
            loader._record(
                item.path,
                "ERR_INVALID_DEFINITION",
                "Default export is not a class extending Component.",
                severity="warning",
            )
            continue
        components.append(item.value)

    if diagnostics is not None:
        diagnostics.extend(loader.diagnostics)

    return components
