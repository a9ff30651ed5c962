"""Amounts of named resources."""

from __future__ import annotations


class Resources(dict[str, int]):
    """Mapping of resource name to amount."""

    def add(self, name: str, amount: int) -> None:
        """Increase the amount of ``name``; unknown names start at zero."""
        self[name] = self.get(name, 0) + amount

    def subtract(self, name: str, amount: int) -> None:
        """Decrease the amount of ``name``; unknown names start at zero."""
        self[name] = self.get(name, 0) - amount

    def copy(self) -> Resources:
        return Resources(self)