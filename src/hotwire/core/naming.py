import re
from pathlib import Path

COMPONENT_SUFFIX = "Component"

_SEGMENT_SPLIT = re.compile(r"[-._]")


def infer_component_name(file_path: str | Path) -> str:
    """
    Best-effort component identity for a file: ``chat-log.py`` -> ``ChatLogComponent``.

    Used when a file is gone and its class can no longer be imported. A component
    whose class name diverges from its file name will not be found.
    """
    stem = Path(file_path).name
    suffix = Path(stem).suffix
    if suffix:
        stem = stem[: -len(suffix)]

    class_name = "".join(part[:1].upper() + part[1:] for part in _SEGMENT_SPLIT.split(stem) if part)
    if class_name.endswith(COMPONENT_SUFFIX):
        return class_name
    return f"{class_name}{COMPONENT_SUFFIX}"


def module_name_for_path(file_path: Path, namespace: str, version: int) -> str:
    """
    Unique module name for a dynamic import of ``file_path``.

    The version makes every load a fresh module, so edits are always observed.
    """
    cleaned = re.sub(r"\W", "_", file_path.stem) or "module"
    return f"_hotwire_{namespace}_{cleaned}_v{version}"
