"""Tests for the staging session and capture session state."""

from kakeibo.capture import CaptureSession, ProgressLog, StagingSession
from kakeibo.models.ledger import CandidateItem, Category


def staged(*prices):
    session = StagingSession()
    ids = [session.append(CandidateItem(name=f"item {p}", price=p)) for p in prices]
    return session, ids


class TestStagingSession:
    """Append, edit, remove and reset."""

    def test_append_assigns_increasing_ids(self):
        """Every appended item gets a fresh id, in order."""
        session, ids = staged(100, 200, 300)
        assert ids == [1, 2, 3]
        assert [item.item_id for item in session.items] == ids
        assert [item.price for item in session.items] == [100, 200, 300]

    def test_append_copies_the_item(self):
        """The caller's draft is never mutated."""
        session = StagingSession()
        draft = CandidateItem(name="卵", price=298)
        item_id = session.append(draft)

        session.update_field(item_id, "price", 1)

        assert draft.price == 298
        assert draft.item_id == 0

    def test_update_field_name_price_category(self):
        """The three editable fields can be replaced."""
        session, (item_id,) = staged(100)

        assert session.update_field(item_id, "name", "  牛乳 ")
        assert session.update_field(item_id, "price", 238)
        assert session.update_field(item_id, "category", "food")

        item = session.get(item_id)
        assert item.name == "牛乳"
        assert item.price == 238
        assert item.category == Category.FOOD

    def test_update_field_ignores_bad_input(self):
        """Unknown ids, unknown fields and invalid values are no-ops."""
        session, (item_id,) = staged(100)

        assert not session.update_field(99, "price", 5)
        assert not session.update_field(item_id, "item_id", 5)
        assert not session.update_field(item_id, "emoji", "🍙")
        assert not session.update_field(item_id, "price", -1)
        assert not session.update_field(item_id, "price", "abc")
        assert not session.update_field(item_id, "category", "groceries")
        assert not session.update_field([item_id], "name", "x")
        assert not session.update_field(str(item_id), "name", "x")
        assert not session.update_field(None, "name", "x")
        assert not session.update_field(True, "name", "x")

        item = session.get(item_id)
        assert item.price == 100
        assert item.category == Category.OTHER

    def test_remove_is_a_real_deletion(self):
        """Removing an item doesn't shift the ids of the others."""
        session, (a, b, c) = staged(100, 200, 300)

        assert session.remove(b)
        assert [item.item_id for item in session.items] == [a, c]
        assert session.get(b) is None
        assert session.update_field(c, "price", 301)
        assert session.get(c).price == 301

    def test_remove_unknown_id(self):
        """Unknown ids report False."""
        session, _ = staged(100)
        assert not session.remove(42)
        assert not session.remove([1])
        assert len(session) == 1

    def test_ids_never_reused_after_reset(self):
        """Reset empties the session but ids keep counting."""
        session, ids = staged(100, 200)
        session.reset()

        assert len(session) == 0
        assert session.append(CandidateItem(price=1)) == 3

    def test_total(self):
        """Total is the sum of staged prices."""
        session, _ = staged(298, 0, 450)
        assert session.total == 748


class TestCaptureSession:
    """Generation counter and lifecycle."""

    def test_begin_capture_clears_state(self):
        """A new capture starts with an empty log and staging."""
        session = CaptureSession()
        session.staging.append(CandidateItem(price=100))
        session.progress.append("old line")

        generation = session.begin_capture()

        assert generation == 1
        assert len(session.staging) == 0
        assert len(session.progress) == 0

    def test_old_log_is_detached(self):
        """Lines written to a previous capture's log never show up in the new one."""
        session = CaptureSession()
        session.begin_capture()
        old_log = session.progress

        session.begin_capture()
        old_log.append("late line")
        session.close()
        old_log.append("later line")

        assert session.progress is not old_log
        assert session.progress.lines == []

    def test_new_capture_makes_previous_stale(self):
        """Only the latest generation is current."""
        session = CaptureSession()
        first = session.begin_capture()
        second = session.begin_capture()

        assert not session.is_current(first)
        assert session.is_current(second)

    def test_close_invalidates_in_flight_capture(self):
        """Closing the surface bumps the generation too."""
        session = CaptureSession()
        generation = session.begin_capture()
        session.staging.append(CandidateItem(price=100))

        session.close()

        assert not session.is_current(generation)
        assert not session.is_open
        assert len(session.staging) == 0


class TestProgressLog:

    def test_lines_are_a_copy(self):
        """Callers can't edit the log through .lines."""
        log = ProgressLog()
        log.append("one")
        log.lines.append("two")
        assert log.lines == ["one"]
