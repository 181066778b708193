"""Glob pattern handling: directory normalization, matching and watch roots.

watchdog watches directories, not globs. ``PatternSet`` bridges the two: it
derives the directories that must be scheduled with the observer and decides
whether an individual event path matches any of the user's patterns.
"""

import fnmatch
import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

RECURSIVE = "**"
_MAGIC = re.compile(r"[*?[]")


def normalize_patterns(patterns: Iterable[str], cwd: str | Path | None = None) -> list[str]:
    """Rewrite patterns naming an existing directory to match everything below it.

    Args:
        patterns: Patterns as given by the user
        cwd: Directory relative patterns are resolved against (default: current directory)

    Returns:
        Patterns in the same order, with directories expanded to ``<dir>/**``
    """
    base = Path(cwd) if cwd is not None else Path.cwd()
    normalized = []
    for pattern in patterns:
        if pattern and (base / pattern).is_dir():
            expanded = os.path.join(pattern, RECURSIVE)
            logger.debug(f"Directory pattern '{pattern}' expanded to '{expanded}'")
            normalized.append(expanded)
        else:
            normalized.append(pattern)
    return normalized


def has_magic(segment: str) -> bool:
    """Return True if the path segment contains glob wildcards (`*`, `?` or `[`)."""
    return _MAGIC.search(segment) is not None


def _split(path: str | Path, root: Path) -> tuple[str, ...]:
    return Path(os.path.normpath(os.path.join(root, path))).parts


def _match_segment(pattern: str, name: str) -> bool:
    # Wildcards never match dotfiles unless the pattern asks for them
    if name.startswith(".") and not pattern.startswith(".") and has_magic(pattern):
        return False
    return fnmatch.fnmatch(name, pattern)


def _match_parts(pattern: tuple[str, ...], parts: tuple[str, ...]) -> bool:
    if not pattern:
        return not parts

    head, rest = pattern[0], pattern[1:]
    if head == RECURSIVE:
        for i in range(len(parts) + 1):
            if _match_parts(rest, parts[i:]):
                return True
            if i == len(parts) or parts[i].startswith("."):
                return False
        return False

    if not parts:
        return False
    return _match_segment(head, parts[0]) and _match_parts(rest, parts[1:])


class PatternSet:
    """A set of glob patterns anchored at a root directory."""

    def __init__(self, patterns: Iterable[str], root: str | Path | None = None):
        """Initialize pattern set.

        Args:
            patterns: Normalized glob patterns
            root: Directory relative patterns are anchored at (default: current directory)
        """
        self.root = Path(root).resolve() if root is not None else Path.cwd().resolve()
        self.patterns = list(patterns)
        self._compiled = [_split(p, self.root) for p in self.patterns]

    def matches(self, path: str | Path) -> bool:
        """Check if path matches any pattern in the set."""
        parts = _split(path, self.root)
        return any(_match_parts(pattern, parts) for pattern in self._compiled)

    def display_path(self, path: str | Path) -> str:
        """Path relative to the root when beneath it, otherwise absolute."""
        full = Path(os.path.normpath(os.path.join(self.root, path)))
        try:
            return str(full.relative_to(self.root))
        except ValueError:
            return str(full)

    def watch_roots(self) -> list[tuple[Path, bool]]:
        """Directories to schedule with the observer.

        Returns:
            Sorted list of (directory, recursive) pairs with no directory
            nested inside another recursive one
        """
        roots: dict[Path, bool] = {}
        for parts in self._compiled:
            prefix: list[str] = []
            for index, segment in enumerate(parts):
                if has_magic(segment):
                    rest = parts[index:]
                    break
                prefix.append(segment)
            else:
                rest = ()

            if rest:
                directory = Path(*prefix)
                recursive = len(rest) > 1 or RECURSIVE in rest
            else:
                # A plain path: watch the directory containing it
                directory = Path(*prefix[:-1]) if len(prefix) > 1 else Path(*prefix)
                recursive = False

            # Not there yet: watch the nearest existing ancestor so it is seen when created
            while not directory.is_dir() and directory.parent != directory:
                directory = directory.parent
                recursive = True

            roots[directory] = roots.get(directory, False) or recursive

        return [
            (directory, recursive)
            for directory, recursive in sorted(roots.items())
            if not any(
                other_recursive and other != directory and directory.is_relative_to(other)
                for other, other_recursive in roots.items()
            )
        ]
