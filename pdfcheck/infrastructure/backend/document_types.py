"""Keyword-based document classification and issue extraction.

File names and result text are matched against Japanese and English
keywords, since both appear in the documents this tool checks.
"""

from typing import Iterable, List, Optional, Tuple

# (label, file-name keywords)
DOCUMENT_TYPES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("contract", ("契約", "contract")),
    ("estimate", ("見積", "estimate", "quotation")),
    ("invoice", ("請求", "invoice")),
    ("traffic guard", ("交通誘導", "配置", "警備")),
    ("survey drawing", ("測量", "横断", "縦断", "survey")),
    ("construction plan", ("施工", "計画", "construction")),
)

# (label, result-text keywords), checked in order
RESULT_TYPES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("contract", ("契約書", "contract")),
    ("estimate", ("見積", "estimate")),
    ("invoice", ("請求", "invoice")),
    ("traffic guard", ("配置実績", "交通誘導")),
)

ISSUE_MARKERS = ("⚠", "警告", "不整合", "矛盾", "warning", "inconsisten")
GUIDELINE_MARKERS = ISSUE_MARKERS + ("注意", "確認")


def detect_document_types(file_name: str) -> List[str]:
    """All document types suggested by a file name."""
    name = file_name.lower()
    return [label for label, keywords in DOCUMENT_TYPES if any(k in name for k in keywords)]


def classify_result(result: str) -> Optional[str]:
    """First document type mentioned in an analysis result, if any."""
    text = result.lower()
    for label, keywords in RESULT_TYPES:
        if any(k in text for k in keywords):
            return label
    return None


def extract_issues(text: str, markers: Iterable[str] = ISSUE_MARKERS) -> List[str]:
    """Trimmed lines of ``text`` that contain any of ``markers``."""
    markers = tuple(markers)
    issues = []
    for line in text.splitlines():
        lowered = line.lower()
        if any(marker in lowered for marker in markers):
            issues.append(line.strip())
    return issues
