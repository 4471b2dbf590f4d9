"""File sink persisting generated mirror modules."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Callable, Iterable, List

from .logging import get_logger

RefreshHook = Callable[[List[Path]], None]


class FileSink:
    """Writes generated text under one output directory."""

    def __init__(self, output_dir: Path, *, refresh_hooks: Iterable[RefreshHook] = ()) -> None:
        self.output_dir = Path(output_dir)
        self._refresh_hooks = list(refresh_hooks)
        self._written: List[Path] = []
        self.logger = get_logger("writer")

    def ensure_directory(self) -> Path:
        """Create the output directory if it does not exist yet."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def write(self, file_name: str, text: str) -> Path:
        """Overwrite ``file_name`` in the output directory with ``text``."""
        path = self.output_dir / file_name
        path.write_text(text, encoding="utf-8")
        self._written.append(path)
        self.logger.debug("Wrote %s (%d bytes)", path, len(text.encode("utf-8")))
        return path

    def refresh(self) -> List[Path]:
        """Make files written since the last refresh visible to importers."""
        written, self._written = self._written, []
        importlib.invalidate_caches()
        for hook in self._refresh_hooks:
            hook(list(written))
        return written


__all__ = ["FileSink", "RefreshHook"]
