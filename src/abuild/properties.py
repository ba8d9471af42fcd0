"""Property store: string-keyed overrides read by task logic.

Properties are set before a run starts (typically from key=value command-line
arguments) and read by build descriptions. Reading a missing property returns
None rather than raising.
"""

from typing import Any, Iterable, Optional

from .errors import ConfigurationError

VERSION_PROPERTY = "abuild.version"


class PropertyFormatError(ConfigurationError):
    """Raised when an override is not of the form key=value."""

    pass


def parse_override(arg: str) -> tuple[str, str]:
    """Split a key=value override at the first "=".

    Args:
        arg: Override such as "target=x86"

    Returns:
        (key, value) tuple; value may be empty or contain "="

    Raises:
        PropertyFormatError: If there is no "=" or the key is empty
    """
    key, sep, value = arg.partition("=")
    if not sep or not key:
        raise PropertyFormatError(f"Invalid argument: {arg}")
    return key, value


class PropertyStore:
    """Mapping of property names to values."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        """Return the property value, or default (None) when missing."""
        return self._values.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def apply_overrides(self, args: Iterable[str]) -> None:
        """Parse and store every key=value argument.

        All arguments are validated before any is stored.

        Raises:
            PropertyFormatError: On the first malformed argument
        """
        parsed = [parse_override(arg) for arg in args]
        for key, value in parsed:
            self.set(key, value)
