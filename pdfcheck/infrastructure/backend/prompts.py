"""Prompt templates sent to the analyzer CLI."""

from typing import Optional, Sequence

from pdfcheck.domain.models.analysis import HistoryEntry

SINGLE_PROMPT = """Read the attached PDF document and check it for internal consistency.

## Reading rules
- Read characters exactly, especially place names, personal names and company names.
- Do not confuse visually similar kanji.
- Do not misread the number of digits in figures.

## Checkpoints by document type

### Contracts
- Are the contracting parties named consistently throughout the document?
- Is the amount calculation (price + consumption tax = contract amount) correct?
- Are the construction dates plausible (start date before completion date)?
- Are the required signature and seal fields present?
- For multiple-choice items, read the option that is circled.

### Traffic guard deployment records
- Does the head count match the number of names listed?
- Do the summary sheet and the slips agree on head count, dates and hours?

### Survey drawings
- Do planned and ground heights agree between the longitudinal and cross sections?
{guidelines_section}
## Output format
- First report the detected document type.
- Mark consistent items with "✓".
- Mark problems with "⚠" and describe them concretely.
- If past analysis history exists, also check consistency with it.
{custom_section}{history_context}
File: {file_name}"""

COMPARE_PROMPT = """Cross-check the attached PDF documents for consistency with each other.

## Files
{file_list}

## Checkpoints
- Are party names (client, contractor, company names) identical across documents?
- Do amounts agree across documents (e.g. estimate and contract)?
- Are dates consistent (contract date, construction period, delivery date)?
- Do quantities and unit prices agree?
- Are seals and signatures present?
- Is everything consistent with the past analysis history?
{guidelines_section}
## Output format
1. Briefly summarize each document.
2. Mark items that agree across documents with "✓".
3. Mark inconsistencies and contradictions with "⚠" and describe them concretely.
4. Give an overall verdict (consistent / needs review / inconsistent).
{custom_section}{history_context}"""

GUIDELINE_PROMPT = """You are an expert in document checking.

Revise the existing guidelines using the new data below. Keep the useful
existing items and add or merge the new patterns.

## Existing guidelines
{existing}

## Issues and warnings detected
{issues}

## Checks the user cares about
{instructions}

## Document types
{document_types}

## Task
1. Keep the useful existing items.
2. Add new issue patterns.
3. Merge duplicates and update outdated items.
4. At most 10 items per category, most important first.

## Output format (strict)
Output JSON only, without any explanation.
Keep each item concrete (for example "watch for mixed tax-inclusive and tax-exclusive
amounts" rather than "check amounts").

```json
{{
  "common": ["mistake pattern 1", "pattern 2"],
  "categories": {{
    "contract": ["mistake common in contracts"],
    "estimate": ["mistake common in estimates"]
  }}
}}
```"""

GUIDELINES_SECTION = """
## Relevant guidelines
{guidelines}
"""

HISTORY_HEADER = """

## Past analysis history (reference)
These documents from the same project were analyzed before. Refer to them when checking consistency.

"""

# Entries and summary lines of past history included in a prompt
HISTORY_CONTEXT_ENTRIES = 10
HISTORY_SUMMARY_LINES = 3

CUSTOM_SECTION = """
## User-specified checks
Make sure to also check the following:
{instruction}
"""


def custom_section(instruction: str) -> str:
    return CUSTOM_SECTION.format(instruction=instruction) if instruction else ""


def guidelines_section(guidelines: Optional[str]) -> str:
    return GUIDELINES_SECTION.format(guidelines=guidelines) if guidelines else ""


def build_history_context(entries: Sequence[HistoryEntry]) -> str:
    """Summarizes the most recent history entries of a project, newest first.

    Returns an empty string when there is no history.
    """
    if not entries:
        return ""
    parts = [HISTORY_HEADER]
    for entry in list(reversed(entries))[:HISTORY_CONTEXT_ENTRIES]:
        parts.append(f"### {entry.file_name} ({entry.analyzed_at})\n")
        if entry.document_type:
            parts.append(f"- Document type: {entry.document_type}\n")
        if entry.issues:
            parts.append("- Detected issues:\n")
            parts.extend(f"  - {issue}\n" for issue in entry.issues)
        summary = " ".join(entry.summary.splitlines()[:HISTORY_SUMMARY_LINES])
        parts.append(f"- Summary: {summary}\n\n")
    return "".join(parts)


def build_single_prompt(
    file_name: str, instruction: str, history_context: str = "", guidelines: Optional[str] = None
) -> str:
    return SINGLE_PROMPT.format(
        guidelines_section=guidelines_section(guidelines),
        custom_section=custom_section(instruction),
        history_context=history_context,
        file_name=file_name,
    )


def build_compare_prompt(
    file_names: Sequence[str], instruction: str, history_context: str = "", guidelines: Optional[str] = None
) -> str:
    return COMPARE_PROMPT.format(
        file_list="\n".join(file_names),
        guidelines_section=guidelines_section(guidelines),
        custom_section=custom_section(instruction),
        history_context=history_context,
    )


def build_guideline_prompt(
    issues: Sequence[str],
    instructions: Sequence[str],
    document_types: Sequence[str],
    existing: Optional[str] = None,
) -> str:
    return GUIDELINE_PROMPT.format(
        existing=existing or "(none - new)",
        issues="\n".join(issues) if issues else "(no new issues)",
        instructions="\n".join(instructions) if instructions else "(none)",
        document_types=", ".join(document_types) if document_types else "(unknown)",
    )
