"""Copilot signal board.

The board is the copilot's roster of signal lists. Several screens can each
register the signals they are showing under their own owner id. The board
always exposes one current list (the most recently set) and at most
one selected signal within it.

The board enforces one invariant: the selected signal, if any, is always a
member of the current list. Every mutation re-checks it.
"""

from collections.abc import Sequence

from copilot.signal_utils import ActionT, get_recommended_signal_actions, sort_copilot_signals
from schemas.signal import Signal


class CopilotSignalBoard:
    """Tracks registered signal lists per owner and the active selection.

    Internally backed by a dict keyed on owner id. Insertion order doubles
    as registration order. Re-registering an owner keeps its original position.

    Attributes:
        _lists: Owner id -> sorted signal list.
        _signals: The current list shown by the copilot.
        _selected_id: Id of the selected signal, or None.
    """

    def __init__(self) -> None:
        """Initialise an empty board with no selection."""
        self._lists: dict[str, list[Signal]] = {}
        self._signals: list[Signal] = []
        self._selected_id: str | None = None

    @property
    def signals(self) -> list[Signal]:
        """Return the current list. A copy, so callers cannot mutate the board."""
        return list(self._signals)

    @property
    def selected_signal_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_signal(self) -> Signal | None:
        return next((s for s in self._signals if s.id == self._selected_id), None)

    def set_signals(self, owner_id: str, signals: Sequence[Signal]) -> None:
        """Register (or replace) an owner's signals and make them current.

        The list is stored sorted. The selection survives if its id is still
        present, otherwise it moves to the first signal (or None if empty).
        """
        ranked = sort_copilot_signals(signals)
        self._lists[owner_id] = ranked
        self._signals = ranked
        if not any(s.id == self._selected_id for s in ranked):
            self._selected_id = ranked[0].id if ranked else None

    def clear_signals(self, owner_id: str) -> None:
        """Unregister an owner.

        The current list falls back to the last owner in registration order
        (or empty), and the selection moves to its first signal.
        Unknown owner ids are ignored apart from that fallback.
        """
        self._lists.pop(owner_id, None)
        self._signals = next(reversed(self._lists.values()), [])
        self._selected_id = self._signals[0].id if self._signals else None

    def set_active_signal(self, signal_id: str | None) -> None:
        """Select a signal by id. None or an empty id clears the selection; unknown ids are ignored."""
        if not signal_id:
            self._selected_id = None
        elif any(s.id == signal_id for s in self._signals):
            self._selected_id = signal_id

    def recommended_actions(self, catalog: Sequence[ActionT]) -> list[ActionT]:
        """Resolve the selected signal's recommended actions against ``catalog``."""
        return get_recommended_signal_actions(self.selected_signal, catalog)

    def __len__(self) -> int:
        """Return the number of registered owners."""
        return len(self._lists)
