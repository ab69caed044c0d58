"""Key-value store protocol."""

from typing import Iterable, Mapping, Optional, Protocol


class KeyValueStore(Protocol):
    """
    Interface for the durable, string-keyed store scoped to one profile.

    Implementations raise StorageError when the backend cannot be read or
    written.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        ...

    def get_many(self, keys: Iterable[str]) -> dict[str, Optional[str]]:
        """Return a mapping of every requested key to its value or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        ...

    def write_batch(
        self,
        entries: Mapping[str, Optional[str]],
        expect: Optional[tuple[str, Optional[str]]] = None,
    ) -> bool:
        """
        Apply all entries atomically (a None value deletes the key).

        When expect=(key, value) is given, the batch is applied only if the
        key currently holds that value (None meaning absent). Returns False
        without writing anything on mismatch.
        """
        ...
