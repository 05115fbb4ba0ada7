"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like file paths, display names and
result text, ensuring consistency across the store, parser and orchestrators.
"""

from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
FilePath = NewType("FilePath", str)            # Unique identity of a tracked document
FileName = NewType("FileName", str)            # Display name, derived from the path
ResultText = NewType("ResultText", str)        # Analysis content or error message
InstructionText = NewType("InstructionText", str)  # Free-text custom instruction
Timestamp = NewType("Timestamp", str)          # "%Y-%m-%d %H:%M:%S"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# === Transcript levels ===
LOG_LEVEL_INFO = "info"
LOG_LEVEL_WAVE = "wave"        # long-running step in progress
LOG_LEVEL_SUCCESS = "success"
LOG_LEVEL_ERROR = "error"

LOG_LEVELS = (LOG_LEVEL_INFO, LOG_LEVEL_WAVE, LOG_LEVEL_SUCCESS, LOG_LEVEL_ERROR)

# === Wire format ===
# Individual-mode responses concatenate "\n## 📄 <name>\n---\n<content>\n\n" sections.
SECTION_MARKER = "## 📄 "
SECTION_SEPARATOR = "---"

# Document type recorded for results produced by a compare run
COMPARE_DOCUMENT_TYPE = "comparative analysis"
