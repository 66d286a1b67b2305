"""
Undo Stack Tests
================

Position bookkeeping, the undo/redo round-trip and signal emission.
"""

import unittest
from decimal import Decimal

from curveeditor.controller.commands import Command, EditPointCommand, PointIndexError
from curveeditor.controller.curve_generator import CurveGenerator
from curveeditor.controller.undo_stack import UndoStack


class RecordingCommand(Command):
    """Appends to a shared log; optionally fails on execute."""

    def __init__(self, name, log, fail=False):
        self.name = name
        self.log = log
        self.fail = fail

    @property
    def description(self):
        return self.name

    def execute(self):
        if self.fail:
            raise RuntimeError(f"{self.name} failed")
        self.log.append(self.name)

    def undo(self):
        self.log.remove(self.name)


class TestRoundTrip(unittest.TestCase):

    def test_n_edits_undo_redo(self):
        curve = CurveGenerator().generate_curve("Peak", 5000, 55, 1500)
        original = curve.snapshot()
        stack = UndoStack()

        for i in range(10):
            stack.do(EditPointCommand(curve, i * 7, speed=i, torque=Decimal(i) / 3))
        edited = curve.snapshot()

        for _ in range(10):
            self.assertTrue(stack.undo())
        self.assertEqual(curve.snapshot(), original)
        self.assertFalse(stack.can_undo)

        for _ in range(10):
            self.assertTrue(stack.redo())
        self.assertEqual(curve.snapshot(), edited)
        self.assertFalse(stack.can_redo)

    def test_same_point_edited_repeatedly(self):
        curve = CurveGenerator().generate_curve("Peak", 5000, 55, 1500)
        original = curve.snapshot()
        stack = UndoStack()
        for torque in (1, 2, 3):
            stack.do(EditPointCommand(curve, 4, torque=torque))
        stack.undo()
        self.assertEqual(curve.points[4].torque, Decimal(2))
        stack.undo()
        stack.undo()
        self.assertEqual(curve.snapshot(), original)


class TestStackState(unittest.TestCase):

    def setUp(self):
        self.log = []
        self.stack = UndoStack()

    def test_clear_on_fresh_stack(self):
        self.stack.clear()
        self.assertFalse(self.stack.can_undo)
        self.assertFalse(self.stack.can_redo)

    def test_clear_discards_history(self):
        self.stack.do(RecordingCommand("a", self.log))
        self.stack.do(RecordingCommand("b", self.log))
        self.stack.undo()
        self.stack.clear()
        self.assertFalse(self.stack.can_undo)
        self.assertFalse(self.stack.can_redo)
        self.assertEqual(len(self.stack), 0)

    def test_undo_redo_at_bounds_are_noops(self):
        self.assertFalse(self.stack.undo())
        self.assertFalse(self.stack.redo())
        self.stack.do(RecordingCommand("a", self.log))
        self.assertFalse(self.stack.redo())

    def test_do_truncates_redo_tail(self):
        self.stack.do(RecordingCommand("a", self.log))
        self.stack.do(RecordingCommand("b", self.log))
        self.stack.undo()
        self.stack.do(RecordingCommand("c", self.log))
        self.assertFalse(self.stack.can_redo)
        self.assertEqual(self.log, ["a", "c"])
        self.assertEqual(self.stack.undo_description, "c")

    def test_failed_command_leaves_stack_unchanged(self):
        self.stack.do(RecordingCommand("a", self.log))
        self.stack.do(RecordingCommand("b", self.log))
        self.stack.undo()

        with self.assertRaises(RuntimeError):
            self.stack.do(RecordingCommand("boom", self.log, fail=True))

        self.assertEqual(self.stack.undo_depth, 1)
        self.assertEqual(self.stack.redo_depth, 1)
        self.assertEqual(self.stack.redo_description, "b")

    def test_point_index_error_propagates(self):
        curve = CurveGenerator().generate_curve("Peak", 100, 1, 1)
        with self.assertRaises(PointIndexError):
            self.stack.do(EditPointCommand(curve, 200, torque=1))
        self.assertFalse(self.stack.can_undo)

    def test_descriptions(self):
        self.assertIsNone(self.stack.undo_description)
        self.stack.do(RecordingCommand("Edit point 3 in series 'Peak'", self.log))
        self.assertEqual(self.stack.undo_description, "Edit point 3 in series 'Peak'")
        self.assertIsNone(self.stack.redo_description)

    def test_capacity_discards_oldest(self):
        stack = UndoStack(capacity=2)
        for name in "abc":
            stack.do(RecordingCommand(name, self.log))
        self.assertEqual(len(stack), 2)
        self.assertEqual(stack.absolute_position, 3)
        self.assertTrue(stack.undo())
        self.assertTrue(stack.undo())
        self.assertFalse(stack.undo())
        self.assertEqual(self.log, ["a"])

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            UndoStack(capacity=0)


class TestSignals(unittest.TestCase):

    def test_stack_changed_emitted_for_each_mutation(self):
        log = []
        stack = UndoStack()
        events = []
        stack.stack_changed.connect(lambda: events.append("changed"))
        stack.command_executed.connect(lambda c: events.append(f"executed {c.description}"))
        stack.command_undone.connect(lambda c: events.append(f"undone {c.description}"))

        stack.do(RecordingCommand("a", log))
        stack.undo()
        stack.undo()
        stack.clear()

        self.assertEqual(events, ["executed a", "changed", "undone a", "changed", "changed"])


if __name__ == "__main__":
    unittest.main()
