"""Domain models specific to analysis and guideline runs.

Includes the run mode, the request payloads sent to the backend, the data
returned by the persistence collaborators, the derived UI state and the
outcome of a run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pdfcheck.domain.models.common import FilePath, InstructionText, Timestamp


class AnalysisMode(str, Enum):
    """How the backend treats the requested set of files."""
    INDIVIDUAL = "individual"  # one sectioned result per file
    COMPARE = "compare"        # one shared result across all files


@dataclass(frozen=True)
class AnalysisRequest:
    """Exactly one of these is issued per analysis run."""
    paths: List[FilePath]
    mode: AnalysisMode
    custom_instruction: InstructionText = InstructionText("")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "paths": list(self.paths),
            "mode": self.mode.value,
            "customInstruction": self.custom_instruction,
        }


@dataclass(frozen=True)
class GuidelineRequest:
    """Request for one aggregate guideline document."""
    paths: List[FilePath]
    folder: str
    custom_instruction: InstructionText = InstructionText("")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "paths": list(self.paths),
            "folder": self.folder,
            "customInstruction": self.custom_instruction,
        }


@dataclass
class HistoryEntry:
    """One persisted analysis entry as returned by the history store."""
    file_path: str
    file_name: str
    analyzed_at: Timestamp
    summary: str
    document_type: Optional[str] = None
    issues: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            file_path=str(data.get("file_path") or data.get("filePath") or ""),
            file_name=str(data.get("file_name") or data.get("fileName") or ""),
            analyzed_at=Timestamp(str(data.get("analyzed_at") or data.get("analyzedAt") or "")),
            summary=str(data.get("summary") or ""),
            document_type=data.get("document_type") or data.get("documentType"),
            issues=list(data.get("issues") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_path": self.file_path,
            "analyzed_at": self.analyzed_at,
            "document_type": self.document_type,
            "summary": self.summary,
            "issues": list(self.issues),
        }


@dataclass
class Guidelines:
    """Checking guidelines kept per project folder: common items plus items per document type."""
    common: List[str] = field(default_factory=list)
    categories: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Guidelines":
        """Builds guidelines from decoded JSON.

        Raises:
            ValueError: If either key is missing or not a list / mapping of lists.
        """
        if not isinstance(data, dict):
            raise ValueError("guidelines must be a JSON object")
        common = data.get("common")
        categories = data.get("categories")
        if not isinstance(common, list) or not isinstance(categories, dict):
            raise ValueError("guidelines need a 'common' list and a 'categories' object")
        if not all(isinstance(items, list) for items in categories.values()):
            raise ValueError("every guideline category must be a list")
        return cls(
            common=[str(item) for item in common],
            categories={str(name): [str(item) for item in items] for name, items in categories.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"common": list(self.common), "categories": {k: list(v) for k, v in self.categories.items()}}

    @property
    def item_count(self) -> int:
        return len(self.common) + sum(len(items) for items in self.categories.values())


@dataclass(frozen=True)
class EmbeddedResult:
    """Analysis data stored inside a PDF's own metadata."""
    result: str
    analyzed_at: Timestamp
    instruction: Optional[str] = None


@dataclass(frozen=True)
class UiState:
    """Enable/disable decisions for every user action."""
    analyze_disabled: bool
    compare_disabled: bool
    clear_disabled: bool
    select_all_disabled: bool
    select_none_disabled: bool
    guidelines_disabled: bool
    custom_instruction_disabled: bool
    copy_instruction_disabled: bool

    def as_dict(self) -> Dict[str, bool]:
        return {
            "analyze": self.analyze_disabled,
            "compare": self.compare_disabled,
            "clear": self.clear_disabled,
            "select-all": self.select_all_disabled,
            "select-none": self.select_none_disabled,
            "guidelines": self.guidelines_disabled,
            "custom-instruction": self.custom_instruction_disabled,
            "copy-instruction": self.copy_instruction_disabled,
        }


@dataclass
class RunOutcome:
    """What a finished analysis or guideline run produced."""
    success: bool
    response: Optional[str] = None
    error: Optional[str] = None
    updated_paths: List[FilePath] = field(default_factory=list)
    ui_state: Optional[UiState] = None
