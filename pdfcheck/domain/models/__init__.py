"""Domain models for tracked files and analysis runs."""
