import logging

from .records import BoardSnapshot

logger = logging.getLogger(__name__)


class BoardStore:
    """The locally held copy of the board.

    The store only ever holds one immutable :class:`BoardSnapshot`; every
    replacement swaps it wholesale and then notifies subscribers, so a
    subscriber never sees a collection that is half updated. Only the
    mutation pipeline writes to it.
    """

    def __init__(self, snapshot=None):
        self._snapshot = snapshot or BoardSnapshot()
        self._listeners = []

    def snapshot(self):
        return self._snapshot

    def replace_columns(self, columns):
        self._set(self._snapshot.replace(columns=tuple(columns)))

    def replace_items(self, items):
        self._set(self._snapshot.replace(items=tuple(items)))

    def replace(self, snapshot):
        """Replace columns and items together, as one change."""
        self._set(snapshot)

    def subscribe(self, listener):
        """Call ``listener(snapshot)`` after every change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, snapshot):
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Board store listener %r failed", listener)
