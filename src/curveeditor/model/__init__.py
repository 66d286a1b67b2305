"""
The MODEL layer contains pure data structures: the motor definition graph,
the unit table and the persisted (key-value) representation.
It has NO knowledge of Qt, of commands, or of how values are edited.
"""
