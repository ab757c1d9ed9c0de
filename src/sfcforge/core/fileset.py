from pathlib import Path


def discover_components(root: Path, extension: str = ".vue") -> list[Path]:
    """Find every component source below ``root``, sorted by path."""
    if not root.exists():
        return []
    files = [p for p in root.rglob(f"*{extension}") if p.is_file()]
    return sorted(set(files))


def component_name(path: Path, extension: str = ".vue") -> str:
    """Registration name of a component: its basename without the extension."""
    name = path.name
    if name.endswith(extension):
        return name[: -len(extension)]
    return path.stem
