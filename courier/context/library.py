"""
Telos library — personal context documents prepended to prompts.

Directory: data/telos/*.md

Non-empty files are concatenated in name order and wrapped in a
<telos-context> block. The chat commands /telos and /telos <name> read
from the same directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ContextLibrary:
    """
    Usage:
        library = ContextLibrary(Path("data/telos"))
        block = library.load_context()      # "" when there is nothing
        print(library.summary())
        text = library.read("goals")        # None when missing
    """

    def __init__(self, directory: Path) -> None:
        self._dir = directory

    @property
    def directory(self) -> Path:
        return self._dir

    def files(self) -> list[Path]:
        if not self._dir.is_dir():
            return []
        return sorted(p for p in self._dir.iterdir() if p.suffix == ".md" and p.is_file())

    def load_context(self) -> str:
        """All non-empty documents as one tagged block, or ""."""
        sections = []
        for path in self.files():
            content = path.read_text(encoding="utf-8").strip()
            if content:
                sections.append(content)
        if not sections:
            return ""
        return "<telos-context>\n" + "\n\n".join(sections) + "\n</telos-context>"

    def summary(self) -> str:
        """Chat-formatted list of documents and their sizes."""
        if not self._dir.is_dir():
            return f"No TELOS directory found at `{self._dir}/`. Create one to add context."

        files = self.files()
        if not files:
            return "TELOS directory exists but contains no `.md` files."

        lines = [f"- `{p.name}` ({p.stat().st_size / 1024:.1f} KB)" for p in files]
        return (
            f"*TELOS context files* ({len(files)} loaded from `{self._dir}/`):\n"
            + "\n".join(lines)
        )

    def read(self, name: str) -> str | None:
        """Content of one document. The .md extension is optional."""
        filename = name if name.endswith(".md") else f"{name}.md"
        path = self._dir / filename
        # Only plain names inside the directory.
        if path.parent != self._dir or not path.is_file():
            return None
        return path.read_text(encoding="utf-8")
