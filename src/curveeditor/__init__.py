"""Editing core for motor torque/speed curve definitions."""
