"""
Editing Coordinator Tests
=========================

Selection replacement is always observable, clearing an empty selection is not.
"""

import unittest

from curveeditor.app.state import EditingCoordinator, PointSelection
from curveeditor.model.motor import Curve


class TestEditingCoordinator(unittest.TestCase):

    def setUp(self):
        self.coordinator = EditingCoordinator()
        self.events = []
        self.coordinator.selection_changed.connect(lambda: self.events.append(True))
        self.curve = Curve("Peak")

    def test_set_same_selection_still_notifies(self):
        points = {PointSelection(self.curve, 1), PointSelection(self.curve, 2)}
        self.coordinator.set_selection(points)
        self.coordinator.set_selection(points)
        self.assertEqual(len(self.events), 2)

    def test_set_empty_selection_notifies(self):
        self.coordinator.set_selection([])
        self.assertEqual(len(self.events), 1)
        self.assertFalse(self.coordinator.has_selection)

    def test_clear_on_empty_is_silent(self):
        self.coordinator.clear_selection()
        self.assertEqual(self.events, [])

    def test_clear_notifies_when_not_empty(self):
        self.coordinator.set_selection([PointSelection(self.curve, 0)])
        self.coordinator.clear_selection()
        self.assertEqual(len(self.events), 2)
        self.assertEqual(self.coordinator.current_selection(), frozenset())

    def test_snapshot_is_unaffected_by_later_changes(self):
        self.coordinator.set_selection([PointSelection(self.curve, 0)])
        snapshot = self.coordinator.current_selection()
        self.coordinator.set_selection([PointSelection(self.curve, 5)])
        self.assertEqual(snapshot, {PointSelection(self.curve, 0)})

    def test_order_and_duplicates_are_irrelevant(self):
        self.coordinator.set_selection([
            PointSelection(self.curve, 3), PointSelection(self.curve, 1), PointSelection(self.curve, 3),
        ])
        self.assertEqual(len(self.coordinator.current_selection()), 2)
        self.assertEqual(self.coordinator.selected_indices(self.curve), [1, 3])

    def test_curves_are_distinguished_by_identity(self):
        twin = Curve("Peak")
        self.coordinator.set_selection([PointSelection(self.curve, 0), PointSelection(twin, 0)])
        self.assertEqual(len(self.coordinator.current_selection()), 2)
        self.assertEqual(self.coordinator.selected_indices(twin), [0])

    def test_none_is_rejected(self):
        with self.assertRaises(ValueError):
            self.coordinator.set_selection(None)
        self.assertEqual(self.events, [])


if __name__ == "__main__":
    unittest.main()
