"""Core Application Layer:

Contains the file record store, the result parser, the UI-state deriver and
the orchestration services that coordinate analysis and guideline runs.
"""
