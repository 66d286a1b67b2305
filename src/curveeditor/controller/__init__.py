"""
The CONTROLLER layer holds the engines that compute and mutate the model:
curve generation, unit conversion, undoable commands and the undo stack.
"""
