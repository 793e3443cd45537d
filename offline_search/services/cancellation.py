"""Cooperative cancellation for search tasks."""

from __future__ import annotations

from offline_search.services.exceptions import SearchCancelled


class CancellationToken:
    """Flag checked by a task at each of its suspension points.

    Cancelling never interrupts an awaitable that is already running; the
    owner notices on its next :meth:`raise_if_cancelled` call.
    """

    __slots__ = ("_cancelled", "label")

    def __init__(self, label: str = "") -> None:
        self._cancelled = False
        self.label = label

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SearchCancelled(self.label or "search superseded")

    def __repr__(self) -> str:
        return f"CancellationToken(label={self.label!r}, cancelled={self._cancelled})"


__all__ = ["CancellationToken"]
