"""Script variable storage.

One store per virtual machine; created empty on every ``run``.
"""

from collections.abc import Iterator


class VariableStore:
    """Mapping from script identifier to numeric value."""

    def __init__(self) -> None:
        self._values: dict[str, float] = {}

    def set(self, name: str, value: float) -> None:
        self._values[name] = float(value)

    def get(self, name: str) -> float:
        """Get a variable's value.

        Raises:
            KeyError: If the variable was never set
        """
        return self._values[name]

    def clear(self) -> None:
        self._values.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({self._values!r})"
