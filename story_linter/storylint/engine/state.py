"""Global state map owned by the orchestrator and frozen after phase B."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterator

from storylint.engine.errors import FrozenStateError


class GlobalState(Mapping[str, Any]):
    """Validator id -> opaque entry. Writable only until ``freeze()``."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set(self, validator_id: str, entry: Any) -> None:
        if self._frozen:
            raise FrozenStateError(
                f"Global state is frozen; cannot write entry for '{validator_id}'"
            )
        self._entries[validator_id] = entry

    def freeze(self) -> None:
        self._frozen = True

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"GlobalState({state}, {sorted(self._entries)})"
