"""Domain layer: countdown state machine, wave detection, message types.

Nothing in this package performs I/O or owns a clock.
"""
