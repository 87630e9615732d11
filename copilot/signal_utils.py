"""Copilot helpers over engine output.

Two pure functions used by the copilot layer: one re-ranks a signal list,
the other resolves a signal's recommended action ids against whatever action
catalog the caller has on hand.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from aggregation.aggregator import sort_signals
from schemas.signal import Signal


class HasId(Protocol):
    """Anything with an ``id`` attribute, e.g. CopilotAction."""

    id: str


ActionT = TypeVar("ActionT", bound=HasId)


def sort_copilot_signals(signals: Iterable[Signal]) -> list[Signal]:
    """Return a new list ordered by severity, then detected_at, both descending.

    Same ordering the engine applies. The input is never mutated.
    """
    return sort_signals(signals)


def get_recommended_signal_actions(
    signal: Signal | None,
    actions: Sequence[ActionT],
) -> list[ActionT]:
    """Map a signal's recommended action ids onto the caller's catalog.

    The result follows the order declared by the signal, not the catalog's
    order. Ids with no catalog entry are dropped silently.

    Args:
        signal: The signal to resolve, or None.
        actions: Catalog entries. Each must expose an ``id`` attribute.

    Returns:
        Matching catalog entries in signal-declared order. Empty for a None
        signal or a signal without recommended actions.
    """
    if signal is None or not signal.recommended_action_ids:
        return []
    by_id = {action.id: action for action in actions}
    return [by_id[action_id] for action_id in signal.recommended_action_ids if action_id in by_id]
