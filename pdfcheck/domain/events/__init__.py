"""Domain Event definitions.

Represents notifications delivered over named channels while a run is in
flight (progress, transcript lines) or while a folder is being watched.
"""
