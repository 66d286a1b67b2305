"""
Undo Stack
==========
Position-tracked list of executed commands.

    commands:  [c0, c1, c2, c3]
    position:               ^  (c0..c2 applied, c3 is redoable)

`do()` executes a command and drops the redo tail, `undo()` / `redo()` move the
position. Undo on an empty history and redo at the tail are tolerated no-ops.

The stack is plain shared state for a single mutator (the UI thread); it does
no locking.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from curveeditor.controller.commands import Command

logger = logging.getLogger(__name__)


class UndoStack(QObject):
    """Undo / redo history of one document."""
    stack_changed = Signal()
    command_executed = Signal(object)
    command_undone = Signal(object)
    command_redone = Signal(object)
    cleared = Signal()

    def __init__(self, capacity: Optional[int] = None) -> None:
        super().__init__()
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be a positive integer or None.")
        self._capacity = capacity
        self._commands: List[Command] = []
        self._position = 0
        # Commands dropped from the bottom because of the capacity limit
        self._discarded = 0

    # --- Queries ---

    @property
    def can_undo(self) -> bool:
        return self._position > 0

    @property
    def can_redo(self) -> bool:
        return self._position < len(self._commands)

    @property
    def undo_depth(self) -> int:
        return self._position

    @property
    def redo_depth(self) -> int:
        return len(self._commands) - self._position

    @property
    def absolute_position(self) -> int:
        """Number of commands applied since the last clear, counting discarded ones."""
        return self._discarded + self._position

    @property
    def undo_description(self) -> Optional[str]:
        return self._commands[self._position - 1].description if self.can_undo else None

    @property
    def redo_description(self) -> Optional[str]:
        return self._commands[self._position].description if self.can_redo else None

    def __len__(self) -> int:
        return len(self._commands)

    # --- Mutations ---

    def do(self, command: Command) -> None:
        """
        Execute `command` and record it.
        If execute() raises, the error propagates and the history is unchanged.
        """
        command.execute()

        del self._commands[self._position:]
        self._commands.append(command)
        self._position += 1

        if self._capacity is not None and len(self._commands) > self._capacity:
            overflow = len(self._commands) - self._capacity
            del self._commands[:overflow]
            self._position -= overflow
            self._discarded += overflow

        logger.debug(f"Executed: {command.description} (depth {self._position})")
        self.command_executed.emit(command)
        self.stack_changed.emit()

    def undo(self) -> bool:
        """Undo the last applied command. Returns False when there is nothing to undo."""
        if not self.can_undo:
            logger.debug("Nothing to undo.")
            return False

        command = self._commands[self._position - 1]
        command.undo()
        self._position -= 1

        logger.debug(f"Undone: {command.description} (depth {self._position})")
        self.command_undone.emit(command)
        self.stack_changed.emit()
        return True

    def redo(self) -> bool:
        """Re-apply the next command. Returns False when already at the tail."""
        if not self.can_redo:
            logger.debug("Nothing to redo.")
            return False

        command = self._commands[self._position]
        command.execute()
        self._position += 1

        logger.debug(f"Redone: {command.description} (depth {self._position})")
        self.command_redone.emit(command)
        self.stack_changed.emit()
        return True

    def clear(self) -> None:
        """Forget all commands (new / open / close document)."""
        self._commands.clear()
        self._position = 0
        self._discarded = 0
        logger.info("Undo history cleared.")
        self.cleared.emit()
        self.stack_changed.emit()
