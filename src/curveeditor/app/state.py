from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, FrozenSet, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from curveeditor.config import EditorSettings
from curveeditor.controller.commands import (
    ChangeUnitCommand, Command, CompositeCommand, EditCurveCommand, EditPointCommand,
    EditPropertyCommand, add_curve, add_drive, add_voltage, remove_curve, remove_drive, remove_voltage
)
from curveeditor.controller.curve_generator import CurveGenerator, round_value
from curveeditor.controller.undo_stack import UndoStack
from curveeditor.controller.unit_conversion import UnitConversionService
from curveeditor.model.motor import Curve, Drive, MotorDefinition, VoltageConfiguration
from curveeditor.model.units import Dimension
from curveeditor.utils import Number

logger = logging.getLogger(__name__)


class CurveLockedError(RuntimeError):
    """Raised when a point edit targets a locked curve."""


@dataclass(frozen=True)
class PointSelection:
    """A selected data point: the curve (by reference) and the point index."""
    curve: Curve
    index: int


class EditingCoordinator(QObject):
    """
    Single shared selection for the chart and the data table.

    The coordinator never dereferences the curves it holds; consumers must
    tolerate entries whose curve has been removed from the document.
    """
    selection_changed = Signal()

    def __init__(self) -> None:
        super().__init__()
        self._selection: FrozenSet[PointSelection] = frozenset()

    def current_selection(self) -> FrozenSet[PointSelection]:
        """Read-only snapshot; later changes do not affect it."""
        return self._selection

    @property
    def has_selection(self) -> bool:
        return bool(self._selection)

    def clear_selection(self) -> None:
        """Clear; silent when already empty."""
        if not self._selection:
            return
        self._selection = frozenset()
        self.selection_changed.emit()

    def set_selection(self, points: Iterable[PointSelection]) -> None:
        """Replace the selection. Always notifies, even for an identical or empty set."""
        if points is None:
            raise ValueError("points is required; use clear_selection() to deselect.")
        self._selection = frozenset(points)
        self.selection_changed.emit()

    def selected_indices(self, curve: Curve) -> List[int]:
        """Sorted indices selected on one curve."""
        return sorted(p.index for p in self._selection if p.curve is curve)


class MotorDocument(QObject):
    """
    One open motor document: the MotorDefinition plus everything needed to edit it.

    Dirty tracking uses a clean checkpoint (the undo position at the last
    load / save). A successful command makes the document dirty; undo / redo
    compare the position with the checkpoint; clearing the history alone
    leaves the flag as it is.
    """
    dirty_changed = Signal(bool)
    motor_changed = Signal(object)

    def __init__(
        self,
        motor: Optional[MotorDefinition] = None,
        file_path: Optional[str] = None,
        settings: Optional[EditorSettings] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or EditorSettings()
        self.motor: Optional[MotorDefinition] = motor
        self.file_path = file_path

        self.undo_stack = UndoStack(capacity=self.settings.undo_capacity)
        self.coordinator = EditingCoordinator()
        self.conversion = UnitConversionService(
            convert_stored_data=self.settings.convert_stored_data,
            display_decimal_places=self.settings.display_decimal_places,
        )
        self.generator = CurveGenerator()

        self._is_dirty = False
        self._clean_position: Optional[int] = 0

        self.undo_stack.command_executed.connect(self._on_command_executed)
        self.undo_stack.command_undone.connect(self._on_position_moved)
        self.undo_stack.command_redone.connect(self._on_position_moved)
        self.undo_stack.cleared.connect(self._on_history_cleared)

    # --- Dirty state ---

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    def _set_dirty(self, value: bool) -> None:
        if value != self._is_dirty:
            self._is_dirty = value
            self.dirty_changed.emit(value)

    def mark_clean(self) -> None:
        """Record the current history position as the saved state."""
        self._clean_position = self.undo_stack.absolute_position
        self._set_dirty(False)

    def _on_command_executed(self, _command: Command) -> None:
        # A new command drops the redo tail; a checkpoint inside it can never be reached again
        if self._clean_position is not None and self._clean_position >= self.undo_stack.absolute_position:
            self._clean_position = None
        self._set_dirty(True)

    def _on_position_moved(self, _command: Command) -> None:
        self._set_dirty(self._clean_position != self.undo_stack.absolute_position)

    def _on_history_cleared(self) -> None:
        self._clean_position = None if self._is_dirty else 0

    # --- Document lifecycle ---

    def load(self, motor: MotorDefinition, file_path: Optional[str] = None) -> None:
        """Replace the whole document (new / open)."""
        self.coordinator.clear_selection()
        self.motor = motor
        self.file_path = file_path
        self.undo_stack.clear()
        self.mark_clean()
        logger.info(f"Document loaded: '{motor.motor_name}' ({file_path or 'unsaved'})")
        self.motor_changed.emit(motor)

    def new(self) -> MotorDefinition:
        motor = MotorDefinition(motor_name="New Motor")
        self.load(motor)
        return motor

    def close(self) -> None:
        self.coordinator.clear_selection()
        self.motor = None
        self.file_path = None
        self.undo_stack.clear()
        self.mark_clean()
        logger.info("Document closed.")
        self.motor_changed.emit(None)

    def saved(self, file_path: str) -> None:
        """
        Called by the file layer after a successful write. Saving under a new
        path (save-as) starts a fresh history.
        """
        if file_path != self.file_path:
            self.undo_stack.clear()
        self.file_path = file_path
        self.mark_clean()

    # --- Command routing ---

    def do(self, command: Command) -> None:
        self.undo_stack.do(command)

    def undo(self) -> bool:
        return self.undo_stack.undo()

    def redo(self) -> bool:
        return self.undo_stack.redo()

    def _require_motor(self) -> MotorDefinition:
        if self.motor is None:
            raise RuntimeError("No motor document is open.")
        return self.motor

    def edit_point(self, curve: Curve, index: int, percent: Optional[int] = None,
                   speed: Optional[Number] = None, torque: Optional[Number] = None) -> EditPointCommand:
        if curve.locked:
            raise CurveLockedError(f"Series '{curve.name}' is locked.")
        command = EditPointCommand(curve, index, percent=percent, speed=speed, torque=torque)
        self.do(command)
        return command

    def edit_selected_points(self, speed: Optional[Number] = None,
                             torque: Optional[Number] = None) -> Optional[CompositeCommand]:
        """
        Apply one value to every selected point as a single undo step.
        Locked curves and selections on curves no longer in the document are skipped.
        """
        live_curves = set(self._require_motor().iter_curves())
        targets = sorted(
            (p for p in self.coordinator.current_selection() if p.curve in live_curves and not p.curve.locked),
            key=lambda p: (id(p.curve), p.index),
        )
        if not targets:
            logger.debug("No editable points selected.")
            return None

        command = CompositeCommand(
            f"Edit {len(targets)} selected points",
            [EditPointCommand(p.curve, p.index, speed=speed, torque=torque) for p in targets],
        )
        self.do(command)
        return command

    def edit_property(self, target: Any, attribute: str, new_value: Any) -> Optional[EditPropertyCommand]:
        """Edit a motor / drive / voltage field; unchanged values are not recorded."""
        if getattr(target, attribute) == new_value:
            return None
        command = EditPropertyCommand(target, attribute, new_value)
        self.do(command)
        return command

    def set_curve_locked(self, curve: Curve, locked: bool) -> EditCurveCommand:
        command = EditCurveCommand(curve, locked=locked)
        self.do(command)
        return command

    def change_unit(self, dimension: Dimension | str, new_unit: str) -> Optional[ChangeUnitCommand]:
        motor = self._require_motor()
        if motor.units.get(dimension) == new_unit:
            return None
        command = ChangeUnitCommand(motor, dimension, new_unit, self.conversion)
        self.do(command)
        return command

    # --- Structural edits ---

    def add_drive(self, drive: Drive) -> None:
        self.do(add_drive(self._require_motor(), drive))

    def remove_drive(self, drive: Drive) -> None:
        curves = [c for v in drive.voltage_configurations for c in v.curves]
        self.do(remove_drive(self._require_motor(), drive))
        self._deselect_curves(curves)

    def add_voltage(self, drive: Drive, voltage: VoltageConfiguration) -> None:
        self.do(add_voltage(drive, voltage))

    def remove_voltage(self, drive: Drive, voltage: VoltageConfiguration) -> None:
        self.do(remove_voltage(drive, voltage))
        self._deselect_curves(voltage.curves)

    def add_curve(self, voltage: VoltageConfiguration, curve: Curve) -> None:
        self.do(add_curve(voltage, curve))

    def add_generated_curve(self, voltage: VoltageConfiguration, name: str) -> Curve:
        """
        Generate a curve from the voltage configuration's ratings and add it.
        The physical model works in N·m / rpm / W, so ratings are converted
        from the stored units and the resulting torques converted back.
        """
        units = self._require_motor().units
        convert = self.conversion.convert
        curve = self.generator.generate_curve(
            name,
            voltage.max_speed,
            convert(voltage.rated_peak_torque, units.torque, "Nm"),
            convert(voltage.power, units.power, "W"),
        )
        if units.torque != "Nm":
            for point in curve.points:
                point.torque = round_value(convert(point.torque, "Nm", units.torque))
        self.add_curve(voltage, curve)
        return curve

    def remove_curve(self, voltage: VoltageConfiguration, curve: Curve) -> None:
        self.do(remove_curve(voltage, curve))
        self._deselect_curves([curve])

    def _deselect_curves(self, curves: Iterable[Curve]) -> None:
        # Runs only after the removal succeeded
        doomed = set(curves)
        selection = self.coordinator.current_selection()
        kept = [p for p in selection if p.curve not in doomed]
        if len(kept) != len(selection):
            self.coordinator.set_selection(kept)

    # --- Display ---

    def display_value(self, stored_value: Number, dimension: Dimension | str, display_unit: str) -> Number:
        """Stored value of `dimension` expressed in `display_unit` (display mode only converts)."""
        stored_unit = self._require_motor().units.get(dimension)
        return self.conversion.get_display_value(stored_value, stored_unit, display_unit)

    def stored_value(self, display_value: Number, dimension: Dimension | str, display_unit: str) -> Number:
        stored_unit = self._require_motor().units.get(dimension)
        return self.conversion.get_stored_value(display_value, display_unit, stored_unit)
