"""Exclusion filtering with gitignore-style patterns."""

from __future__ import annotations

from collections.abc import Iterable

import pathspec


class PathFilter:
    """Match root-relative paths against user-supplied exclude patterns.

    Paths are never resolved or stat'ed here: on a hung filesystem even
    ``Path.resolve`` can block, so matching is purely lexical.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = [line.strip() for line in patterns if line.strip()]
        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def include(self, rel_path: str, *, is_dir: bool) -> bool:
        rel_text = rel_path.replace("\\", "/")
        if is_dir:
            rel_text += "/"
        return not self._spec.match_file(rel_text)
