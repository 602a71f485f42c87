"""Single-trip selection and keyboard deletion."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gantt_engine.core.events import EventEmitter
from gantt_engine.core.models import DeleteRequest, Snapshot
from gantt_engine.core.reconciler import Reconciler

logger = logging.getLogger(__name__)

SELECTED_CLASS: str = "selected"
DELETE_KEYS: tuple[str, ...] = ("Delete",)


@dataclass
class ChartSession:
    """Interaction state owned by one chart instance.

    Attributes:
        selected_key: Key of the selected trip, or ``None``.
    """

    selected_key: str | None = None

    @property
    def has_selection(self) -> bool:
        return self.selected_key is not None

    def clear(self) -> None:
        self.selected_key = None


class SelectionController:
    """Applies click and key events to a :class:`ChartSession`."""

    def __init__(
        self,
        reconciler: Reconciler,
        delete: EventEmitter[DeleteRequest],
        delete_keys: tuple[str, ...] = DELETE_KEYS,
    ) -> None:
        self.reconciler = reconciler
        self.delete = delete
        self.delete_keys = delete_keys

    def click(self, session: ChartSession, trip_key: str) -> str | None:
        """Toggle selection on *trip_key*; returns the new selected key."""
        previous = session.selected_key
        if previous is not None:
            node = self.reconciler.trip_handle(previous)
            if node is not None:
                node.classed(SELECTED_CLASS, False)
            session.clear()
            if previous == trip_key:
                return None

        node = self.reconciler.trip_handle(trip_key)
        if node is None:
            return None
        node.classed(SELECTED_CLASS, True)
        session.selected_key = trip_key
        return trip_key

    def key_up(
        self, session: ChartSession, snapshot: Snapshot, key: str
    ) -> DeleteRequest | None:
        if key not in self.delete_keys or not session.has_selection:
            return None
        return self.delete_selected(session, snapshot)

    def delete_selected(
        self, session: ChartSession, snapshot: Snapshot
    ) -> DeleteRequest | None:
        """Remove the selected trip element and notify the host.

        Indices are resolved by key against *snapshot*; the trip is then
        dropped from the snapshot so that a second deletion before the
        host's next snapshot still reports indices the host agrees with.
        """
        trip_key = session.selected_key
        if trip_key is None:
            return None

        driver_index, remove_index = snapshot.trip_position(trip_key)
        if driver_index < 0 or remove_index < 0:
            logger.warning("Selected trip %s is not in the current snapshot", trip_key)

        self.reconciler.discard_trip(trip_key)
        snapshot.remove_trip(trip_key)
        session.clear()

        request = DeleteRequest(driver_index=driver_index, remove_index=remove_index)
        logger.info(
            "Delete request: driver %d, trip %d", driver_index, remove_index
        )
        self.delete.emit(request)
        return request
