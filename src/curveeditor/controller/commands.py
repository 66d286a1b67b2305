"""
Undoable Commands
=================
Every mutating edit of a motor document is expressed as a `Command` and run
through the `UndoStack`.

Commands capture their "before" state lazily, in `execute()`, never in the
constructor: a command may be built before the edit is known to be applied,
and a redo re-reads the state it is about to overwrite.

Classes:
    Command: Abstract base (description / execute / undo).
    EditPointCommand: Percent / speed / torque of one curve point.
    EditPropertyCommand: Any scalar attribute of a motor, drive or voltage.
    EditCurveCommand: Name, lock flag and notes of a curve.
    InsertItemCommand, RemoveItemCommand: Structural add / remove.
    ChangeUnitCommand: Unit switch of one dimension (+ stored conversion).
    CompositeCommand: Several commands applied as one undo step.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
import logging
from typing import Any, List, MutableSequence, Optional, Sequence, TYPE_CHECKING

from curveeditor.model.motor import Curve, DataPoint, Drive, MotorDefinition, VoltageConfiguration
from curveeditor.model.units import Dimension, UnitSettings
from curveeditor.utils import Number, to_decimal

if TYPE_CHECKING:
    from curveeditor.controller.unit_conversion import FieldChange, UnitConversionService

logger = logging.getLogger(__name__)


class PointIndexError(IndexError):
    """A command's point index does not exist in its curve (anymore)."""


class Command(ABC):
    """A reversible edit."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable label, shown verbatim in the Undo / Redo menu."""

    @abstractmethod
    def execute(self) -> None:
        pass

    @abstractmethod
    def undo(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.description}>"


class EditPointCommand(Command):
    """
    Edits one data point. Each of `percent`, `speed` and `torque` is optional;
    None leaves that value unchanged.
    """

    def __init__(
        self,
        curve: Curve,
        index: int,
        percent: Optional[int] = None,
        speed: Optional[Number] = None,
        torque: Optional[Number] = None,
    ) -> None:
        if curve is None:
            raise ValueError("curve is required.")
        self._curve = curve
        self._index = index
        self._new_percent = percent
        self._new_speed = to_decimal(speed) if speed is not None else None
        self._new_torque = to_decimal(torque) if torque is not None else None
        self._old: Optional[tuple[int, Decimal, Decimal]] = None

    @property
    def description(self) -> str:
        return f"Edit point {self._index} in series '{self._curve.name}'"

    @property
    def curve(self) -> Curve:
        return self._curve

    @property
    def index(self) -> int:
        return self._index

    def _point(self) -> DataPoint:
        if self._index < 0 or self._index >= len(self._curve.points):
            raise PointIndexError(
                f"Point index {self._index} is out of range for series '{self._curve.name}' "
                f"({len(self._curve.points)} points)."
            )
        return self._curve.points[self._index]

    def execute(self) -> None:
        point = self._point()
        self._old = point.as_tuple()

        if self._new_percent is not None:
            point.percent = self._new_percent
        if self._new_speed is not None:
            point.speed = self._new_speed
        if self._new_torque is not None:
            point.torque = self._new_torque

    def undo(self) -> None:
        point = self._point()
        if self._old is None:
            raise RuntimeError("Cannot undo a command that was never executed.")
        point.percent, point.speed, point.torque = self._old


class EditPropertyCommand(Command):
    """
    Sets one attribute of a motor, drive or voltage configuration.
    Unit settings are not plain attributes: they change through `ChangeUnitCommand`.
    """

    def __init__(self, target: Any, attribute: str, new_value: Any, label: Optional[str] = None) -> None:
        if target is None:
            raise ValueError("target is required.")
        if attribute == "units":
            raise ValueError("Unit settings cannot be edited as a property; use ChangeUnitCommand (MotorDocument.change_unit).")
        if not hasattr(target, attribute):
            raise AttributeError(f"{type(target).__name__} has no attribute '{attribute}'.")
        current = getattr(target, attribute)
        if isinstance(current, Decimal) and new_value is not None:
            new_value = to_decimal(new_value)

        self._target = target
        self._attribute = attribute
        self._new_value = new_value
        self._old_value: Any = None
        self._label = label or attribute.replace("_", " ")

    @property
    def description(self) -> str:
        return f"Edit {type(self._target).__name__} {self._label}"

    def execute(self) -> None:
        self._old_value = getattr(self._target, self._attribute)
        setattr(self._target, self._attribute, self._new_value)

    def undo(self) -> None:
        setattr(self._target, self._attribute, self._old_value)


class EditCurveCommand(Command):
    """Renames, locks / unlocks or annotates a curve."""

    def __init__(
        self,
        curve: Curve,
        name: Optional[str] = None,
        locked: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> None:
        if curve is None:
            raise ValueError("curve is required.")
        self._curve = curve
        self._new = {"name": name, "locked": locked, "notes": notes}
        self._curve_name = curve.name
        self._old: dict[str, Any] = {}

    @property
    def description(self) -> str:
        if self._new["locked"] is not None and self._new["name"] is None:
            return f"{'Lock' if self._new['locked'] else 'Unlock'} series '{self._curve_name}'"
        return f"Edit series '{self._curve_name}'"

    def execute(self) -> None:
        self._old = {key: getattr(self._curve, key) for key, value in self._new.items() if value is not None}
        for key in self._old:
            setattr(self._curve, key, self._new[key])

    def undo(self) -> None:
        for key, value in self._old.items():
            setattr(self._curve, key, value)


def _index_of(container: Sequence[Any], item: Any) -> int:
    # Identity, not equality: two curves with equal data are still different curves
    for i, candidate in enumerate(container):
        if candidate is item:
            return i
    raise ValueError(f"{type(item).__name__} is not part of the container.")


class InsertItemCommand(Command):
    """Inserts `item` into an owning list (drives, voltages or curves)."""

    def __init__(self, container: MutableSequence[Any], item: Any, description: str, index: Optional[int] = None) -> None:
        self._container = container
        self._item = item
        self._index = index
        self._description = description

    @property
    def description(self) -> str:
        return self._description

    def execute(self) -> None:
        position = len(self._container) if self._index is None else self._index
        if position < 0 or position > len(self._container):
            raise IndexError(f"Insert position {position} is out of range.")
        self._container.insert(position, self._item)

    def undo(self) -> None:
        del self._container[_index_of(self._container, self._item)]


class RemoveItemCommand(Command):
    """Removes `item` from its owning list; undo puts it back at the same position."""

    def __init__(self, container: MutableSequence[Any], item: Any, description: str) -> None:
        self._container = container
        self._item = item
        self._description = description
        self._removed_at: Optional[int] = None

    @property
    def description(self) -> str:
        return self._description

    def execute(self) -> None:
        self._removed_at = _index_of(self._container, self._item)
        del self._container[self._removed_at]

    def undo(self) -> None:
        if self._removed_at is None:
            raise RuntimeError("Cannot undo a command that was never executed.")
        self._container.insert(self._removed_at, self._item)


def add_drive(motor: MotorDefinition, drive: Drive) -> InsertItemCommand:
    return InsertItemCommand(motor.drives, drive, f"Add drive '{drive.name}'")


def remove_drive(motor: MotorDefinition, drive: Drive) -> RemoveItemCommand:
    return RemoveItemCommand(motor.drives, drive, f"Remove drive '{drive.name}'")


def add_voltage(drive: Drive, voltage: VoltageConfiguration) -> InsertItemCommand:
    return InsertItemCommand(drive.voltage_configurations, voltage, f"Add {voltage.voltage_value} V to '{drive.name}'")


def remove_voltage(drive: Drive, voltage: VoltageConfiguration) -> RemoveItemCommand:
    return RemoveItemCommand(drive.voltage_configurations, voltage, f"Remove {voltage.voltage_value} V from '{drive.name}'")


def add_curve(voltage: VoltageConfiguration, curve: Curve) -> InsertItemCommand:
    return InsertItemCommand(voltage.curves, curve, f"Add series '{curve.name}'")


def remove_curve(voltage: VoltageConfiguration, curve: Curve) -> RemoveItemCommand:
    return RemoveItemCommand(voltage.curves, curve, f"Remove series '{curve.name}'")


class ChangeUnitCommand(Command):
    """
    Switches the unit of one dimension. In stored mode the conversion service
    rewrites the values as part of the same step; undo restores the exact
    previous values rather than converting back.
    """

    def __init__(
        self,
        motor: MotorDefinition,
        dimension: Dimension | str,
        new_unit: str,
        conversion: UnitConversionService,
    ) -> None:
        self._motor = motor
        self._dimension = Dimension(dimension)
        self._new_unit = new_unit
        self._conversion = conversion
        self._old_units: Optional[UnitSettings] = None
        self._changes: List[FieldChange] = []

    @property
    def description(self) -> str:
        return f"Change {self._dimension.value.replace('_', ' ')} unit to {self._new_unit}"

    def execute(self) -> None:
        old_units = self._motor.units
        self._changes = self._conversion.change_unit(self._motor, self._dimension, self._new_unit)
        self._old_units = old_units

    def undo(self) -> None:
        if self._old_units is None:
            raise RuntimeError("Cannot undo a command that was never executed.")
        for change in reversed(self._changes):
            change.revert()
        self._motor.units = self._old_units


class CompositeCommand(Command):
    """Runs several commands as a single undo step; a failing child rolls back its siblings."""

    def __init__(self, description: str, commands: Sequence[Command]) -> None:
        self._description = description
        self._commands = list(commands)

    @property
    def description(self) -> str:
        return self._description

    @property
    def commands(self) -> List[Command]:
        return list(self._commands)

    def execute(self) -> None:
        done: List[Command] = []
        try:
            for command in self._commands:
                command.execute()
                done.append(command)
        except Exception:
            logger.warning(f"'{self._description}' failed after {len(done)} steps; rolling back.")
            for command in reversed(done):
                command.undo()
            raise

    def undo(self) -> None:
        for command in reversed(self._commands):
            command.undo()
