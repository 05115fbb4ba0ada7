"""Interface for the external analysis backend.

The backend accepts a list of file paths, a mode and free-text instructions
and answers with a single text blob, or fails with a human-readable message.
"""

import abc

from pdfcheck.domain.models.analysis import AnalysisRequest, GuidelineRequest


class AnalysisBackend(abc.ABC):
    """Abstract Base Class for the CLI-backed analyzer."""

    @abc.abstractmethod
    async def analyze_pdfs(self, request: AnalysisRequest) -> str:
        """Analyzes the requested PDFs.

        Args:
            request: Paths, mode and trimmed custom instruction.

        Returns:
            In compare mode, one shared result. In individual mode, the
            concatenation of ``"\\n## 📄 <name>\\n---\\n<content>\\n"`` sections.

        Raises:
            BackendError: If the analysis failed as a whole.
        """
        pass

    @abc.abstractmethod
    async def generate_guidelines(self, request: GuidelineRequest) -> str:
        """Produces one aggregate guideline document for already-analyzed files.

        Raises:
            BackendError: If generation failed.
        """
        pass
