"""
Capture Session State

One CaptureSession exists per open capture surface. It owns:
1. The staging session - candidate items the user reviews and edits
2. The progress log - human-readable lines shown while extracting
3. A generation counter - lets late extraction results be recognised
   and dropped when the user has already started another capture

DESIGN DECISION: Items are keyed by a stable item id, not a list position.
Edits and removals are addressed by that id, so removing an item is a real
deletion and never shifts the ids of the items after it.

Nothing in here knows about presentation. UI code calls update_field()
with whatever its widgets produce; bad input is ignored, never raised.
"""

from itertools import count
from typing import Any, Iterator, Optional
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError

from kakeibo.models.ledger import CandidateItem

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = frozenset({"name", "price", "category"})


class ProgressLog:
    """Append-only list of progress lines for one capture."""

    def __init__(self):
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        self._lines.append(line)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._lines))


class StagingSession:
    """
    Working set of candidate items between extraction and commit.

    Item ids are monotonic and never reused, even across reset().
    """

    def __init__(self):
        self._items: dict[int, CandidateItem] = {}
        self._ids = count(1)

    def append(self, item: CandidateItem) -> int:
        """
        Add an item to the end of the session.

        The item is copied; the caller's object is never mutated.

        Returns:
            The item id assigned to the staged copy
        """
        item_id = next(self._ids)
        self._items[item_id] = item.model_copy(update={"item_id": item_id})
        return item_id

    def update_field(self, item_id: int, field: str, value: Any) -> bool:
        """
        Replace one field of a staged item.

        Only name, price and category are editable. Unknown ids, unknown
        fields and values that fail validation are ignored.

        Returns:
            True if the edit was applied
        """
        item = self.get(item_id)
        if item is None or field not in EDITABLE_FIELDS:
            logger.debug("staging_edit_ignored", item_id=item_id, field=field)
            return False

        try:
            setattr(item, field, value)
        except ValidationError as e:
            logger.debug(
                "staging_edit_rejected",
                item_id=item_id,
                field=field,
                error_count=e.error_count(),
            )
            return False
        return True

    def remove(self, item_id: int) -> bool:
        """Delete an item. Returns False if the id is unknown."""
        if self.get(item_id) is None:
            return False
        del self._items[item_id]
        return True

    def reset(self) -> None:
        """Drop every staged item. Ids keep counting up."""
        self._items.clear()

    def get(self, item_id: int) -> Optional[CandidateItem]:
        # Ids come straight from UI widgets; anything but an int is unknown
        if not isinstance(item_id, int) or isinstance(item_id, bool):
            return None
        return self._items.get(item_id)

    @property
    def items(self) -> list[CandidateItem]:
        """Staged items in the order they were appended."""
        return list(self._items.values())

    @property
    def total(self) -> int:
        return sum(item.price for item in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CandidateItem]:
        return iter(self.items)


class CaptureSession:
    """
    State of one capture surface, passed explicitly to the coordinator
    and the commit process.
    """

    def __init__(self, session_id: Optional[UUID] = None):
        self.session_id = session_id or uuid4()
        self.staging = StagingSession()
        self.progress = ProgressLog()
        self.generation = 0
        self.is_open = True

    def begin_capture(self) -> int:
        """
        Start a new extraction on this session.

        Replaces the progress log, clears staged items and bumps the generation,
        which makes any extraction still in flight stale.

        Returns:
            The generation tag for the new extraction
        """
        self.generation += 1
        self.progress = ProgressLog()
        self.staging.reset()
        self.is_open = True
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def close(self) -> None:
        """
        Close the capture surface.

        Bumps the generation too, so a result arriving after close is dropped.
        """
        self.generation += 1
        self.staging.reset()
        self.progress = ProgressLog()
        self.is_open = False
