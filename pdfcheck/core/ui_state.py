"""UI-State Deriver: maps aggregate flags to enable/disable decisions."""

from pdfcheck.domain.models.analysis import UiState
from pdfcheck.core.file_store import FileRecordStore


def derive_ui_state(
    *,
    has_files: bool,
    has_checked: bool,
    has_results_selected: bool,
    busy: bool,
    has_custom_instruction: bool,
) -> UiState:
    """Pure function of the five aggregate flags.

    ``compare`` is suppressed while any checked file already carries a
    non-error result, so already-checked files are not re-compared.
    """
    return UiState(
        analyze_disabled=busy or not has_checked,
        compare_disabled=busy or not has_checked or has_results_selected,
        clear_disabled=busy or not has_files,
        select_all_disabled=not has_files,
        select_none_disabled=not has_files,
        guidelines_disabled=busy or not has_results_selected,
        custom_instruction_disabled=busy or not has_checked,
        copy_instruction_disabled=busy or not has_results_selected or not has_custom_instruction,
    )


def derive_from_store(store: FileRecordStore, custom_instruction: str = "", busy: bool = False) -> UiState:
    """Derives the UI state from a store; ``busy`` adds to any in-flight record."""
    return derive_ui_state(
        has_files=store.has_files,
        has_checked=store.has_checked,
        has_results_selected=store.has_results_selected,
        busy=busy or store.any_analyzing,
        has_custom_instruction=bool((custom_instruction or "").strip()),
    )
