"""Named on/off shell options, as used by ``set -o`` and ``shopt``."""

from __future__ import annotations

from dataclasses import dataclass, field


class InvalidOptionError(LookupError):
    """Raised when an option name is not known to an option set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name}: invalid shell option name")
        self.name = name


def format_option(name: str, on: bool) -> str:
    """Format an option the way ``shopt`` lists it."""
    state = "on" if on else "off"
    if len(name) < 16:
        return f"{name:<16}{state}"
    return f"{name}\t{state}"


def format_set_option(name: str, on: bool) -> str:
    """Format an option the way ``set +o`` lists it."""
    sign = "-" if on else "+"
    return f"set {sign}o {name}"


@dataclass
class Options:
    """A fixed set of named boolean options."""

    values: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def basic(cls) -> Options:
        """Options handled by ``set -o``."""
        return cls({"pipefail": False})

    @classmethod
    def shopts(cls) -> Options:
        """Options handled by ``shopt``."""
        return cls({"extglob": True})

    def query(self, name: str) -> bool:
        """Return whether the option exists and is switched on."""
        return self.values.get(name, False)

    def set(self, name: str, on: bool) -> None:
        """Switch a known option on or off."""
        if name not in self.values:
            raise InvalidOptionError(name)
        self.values[name] = on

    def describe(self, name: str) -> str:
        """Return the listing line of one option."""
        if name not in self.values:
            raise InvalidOptionError(name)
        return format_option(name, self.values[name])

    def listing(self) -> list[str]:
        """All options as sorted ``shopt`` lines."""
        return sorted(format_option(k, v) for k, v in self.values.items())

    def set_listing(self) -> list[str]:
        """All options as sorted ``set +o`` lines."""
        return sorted(format_set_option(k, v) for k, v in self.values.items())

    def listing_if(self, on: bool) -> list[str]:
        """Sorted ``shopt`` lines of the options in the given state."""
        return sorted(
            format_option(k, v) for k, v in self.values.items() if v == on
        )