"""
Glob-based exclusion rules applied to paths relative to the sync root.
"""
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from ..exceptions import ConfigError


@dataclass(frozen=True)
class _Rule:
    pattern: str
    segments: Tuple[str, ...]
    dir_only: bool


def _parse(raw: str) -> _Rule:
    pattern = raw.strip()
    anchored = pattern.startswith('/') or pattern.startswith('./')
    while pattern.startswith('./'):
        pattern = pattern[2:]
    pattern = pattern.lstrip('/')
    dir_only = pattern.endswith('/')
    pattern = pattern.rstrip('/')
    segments = tuple(seg for seg in pattern.split('/') if seg)
    if not segments:
        raise ConfigError(f"Invalid exclusion pattern: '{raw}'")
    if len(segments) == 1 and not anchored:
        # bare name patterns match at any depth
        segments = ('**',) + segments
    return _Rule(pattern=raw.strip(), segments=segments, dir_only=dir_only)


def _match_segments(pattern: Sequence[str], path: Sequence[str]) -> bool:
    if not pattern:
        return not path
    seg = pattern[0]
    if seg == '**':
        rest = pattern[1:]
        return any(_match_segments(rest, path[i:]) for i in range(len(path) + 1))
    if not path:
        return False
    return fnmatchcase(path[0], seg) and _match_segments(pattern[1:], path[1:])


class ExclusionRuleSet:
    """
    Ordered set of shell-style glob patterns.

    Patterns are matched segment by segment against forward-slash relative
    paths. ``*``, ``?`` and ``[...]`` never cross a ``/``; ``**`` spans zero
    or more directories. A pattern without ``/`` matches a name at any depth
    unless it starts with ``/`` or ``./``. A trailing ``/`` limits the
    pattern to directories. A match on a directory excludes everything
    beneath it.

    Matching is pure: it never touches the filesystem.

    Examples:
        >>> rules = ExclusionRuleSet(["*.tmp", "build/", "docs/**/draft-*"])
        >>> rules.matches("a/b/x.tmp")
        True
        >>> rules.matches("build/out.o")
        True
        >>> rules.matches("docs/2024/q1/draft-1.md")
        True
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self._rules: List[_Rule] = []
        for raw in patterns:
            line = raw.strip()
            if not line or line.startswith('#'):
                continue
            self._rules.append(_parse(line))

    @classmethod
    def from_file(cls, path: str, extra: Iterable[str] = ()) -> 'ExclusionRuleSet':
        """
        Load patterns from a file, one per line. Blank lines and '#' comments are ignored.

        Raises:
            ConfigError: If the file cannot be read
        """
        try:
            lines = Path(path).read_text(encoding='utf-8').splitlines()
        except OSError as e:
            raise ConfigError(f"Cannot read exclusion file {path}: {e}") from e
        return cls(list(extra) + lines)

    @property
    def patterns(self) -> Tuple[str, ...]:
        return tuple(rule.pattern for rule in self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[str]:
        return iter(self.patterns)

    def __repr__(self) -> str:
        return f"ExclusionRuleSet({list(self.patterns)!r})"

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Check whether a relative path is excluded.

        Args:
            relative_path: Path relative to the sync root, '/' separated
            is_dir: Whether the path itself is a directory

        Returns:
            bool: True if any rule matches the path or one of its parent directories
        """
        if not self._rules:
            return False
        parts = [part for part in relative_path.replace('\\', '/').split('/') if part and part != '.']
        for depth in range(1, len(parts) + 1):
            candidate = parts[:depth]
            candidate_is_dir = depth < len(parts) or is_dir
            for rule in self._rules:
                if rule.dir_only and not candidate_is_dir:
                    continue
                if _match_segments(rule.segments, candidate):
                    return True
        return False
