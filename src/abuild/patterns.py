"""Glob-like source patterns.

Pattern syntax:
    *   any substring, including the empty string and path separators
    ?   exactly one character
    .   a literal dot

Every other character matches itself. A pattern must match the whole path.
A candidate file matches when either its path relative to the working
directory or its absolute path matches; both are compared in POSIX form.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path


def compile_pattern(glob: str) -> re.Pattern[str]:
    """Compile a glob string into a regular expression.

    Args:
        glob: Pattern such as "src/*.c"

    Returns:
        Compiled regex that must be used with fullmatch()
    """
    parts = []
    for char in glob:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


@dataclass(frozen=True, eq=False)
class SourcePattern:
    """A compiled source pattern.

    Instances compare by identity so that two registrations of the same glob
    remain distinct matcher pairs.

    Attributes:
        glob: The pattern as written in the build description
        regex: Compiled form of the pattern
    """

    glob: str
    regex: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", compile_pattern(self.glob))

    def matches(self, path: Path, root: Path) -> bool:
        """Check a file against this pattern.

        Args:
            path: Candidate file
            root: Working directory the relative form is computed against

        Returns:
            True if the relative or the absolute path matches
        """
        absolute = Path(path).absolute()
        try:
            relative = absolute.relative_to(Path(root).absolute()).as_posix()
        except ValueError:
            relative = None
        if relative is not None and self.regex.fullmatch(relative):
            return True
        return self.regex.fullmatch(absolute.as_posix()) is not None

    def matches_text(self, candidate: str) -> bool:
        """Match a bare path string."""
        return self.regex.fullmatch(candidate) is not None
