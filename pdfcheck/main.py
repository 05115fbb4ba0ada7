"""Main entry point for the pdfcheck application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from pdfcheck.core.command_handler import CommandHandler
from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.core.services.analysis_service import AnalysisService
from pdfcheck.core.services.detection_service import DetectionService
from pdfcheck.core.services.guideline_service import GuidelineService
from pdfcheck.core.services.history_loader import HistoryLoader
from pdfcheck.core.services.run_scope import RunGuard

# --- Infrastructure Layer ---
from pdfcheck.infrastructure.backend.cli_backend import CliAnalyzerBackend
from pdfcheck.infrastructure.cli.display import ConsoleDisplay
from pdfcheck.infrastructure.config.settings import (
    get_analyzer_command,
    get_analyzer_timeout,
    get_config,
    get_history_dir,
    get_history_max_entries,
    get_model,
    get_watch_interval,
    load_configuration,
)
from pdfcheck.infrastructure.events.local_bus import LocalEventBus
from pdfcheck.infrastructure.filesystem.folder_watcher import PollingFolderWatcher
from pdfcheck.infrastructure.filesystem.local_fs import LocalFileSystem
from pdfcheck.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from pdfcheck.infrastructure.storage.guideline_store import JsonGuidelineStore
from pdfcheck.infrastructure.storage.history_store import JsonHistoryStore
from pdfcheck.infrastructure.storage.pdf_embed import PdfEmbeddedResultStore

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration()
        log_level_name = str(get_config('logging.level', 'WARNING')).upper()
        log_level = getattr(logging, log_level_name, logging.WARNING)
        setup_logging(
            log_level=log_level,
            log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
            log_file=get_config('logging.file'),
        )
        logger.info("Configuration and logging initialized.")

        # 2. Infrastructure adapters
        dependencies['ui'] = ConsoleDisplay()
        dependencies['file_system'] = LocalFileSystem()
        dependencies['event_bus'] = LocalEventBus()
        dependencies['folder_watcher'] = PollingFolderWatcher(
            event_bus=dependencies['event_bus'],
            interval_seconds=get_watch_interval(),
        )
        dependencies['history_store'] = JsonHistoryStore(
            history_dir=get_history_dir(),
            max_entries=get_history_max_entries(),
        )
        dependencies['embedded_store'] = PdfEmbeddedResultStore()
        dependencies['guideline_store'] = JsonGuidelineStore()
        dependencies['backend'] = CliAnalyzerBackend(
            event_bus=dependencies['event_bus'],
            embedded_store=dependencies['embedded_store'],
            history_store=dependencies['history_store'],
            command=get_analyzer_command(),
            model=get_model(),
            timeout_seconds=get_analyzer_timeout(),
            guideline_store=dependencies['guideline_store'],
        )

        # 3. Core services; both orchestrators share one store and one run guard
        dependencies['store'] = FileRecordStore()
        dependencies['run_guard'] = RunGuard()
        dependencies['analysis_service'] = AnalysisService(
            store=dependencies['store'],
            backend=dependencies['backend'],
            event_bus=dependencies['event_bus'],
            ui=dependencies['ui'],
            run_guard=dependencies['run_guard'],
        )
        dependencies['guideline_service'] = GuidelineService(
            store=dependencies['store'],
            backend=dependencies['backend'],
            event_bus=dependencies['event_bus'],
            ui=dependencies['ui'],
            run_guard=dependencies['run_guard'],
        )
        dependencies['history_loader'] = HistoryLoader(
            store=dependencies['store'],
            history_store=dependencies['history_store'],
            embedded_store=dependencies['embedded_store'],
        )
        dependencies['detection_service'] = DetectionService(
            loader=dependencies['history_loader'],
            event_bus=dependencies['event_bus'],
            ui=dependencies['ui'],
        )
        logger.info("Core services initialized.")

        # 4. Command Handler
        dependencies['command_handler'] = CommandHandler(
            store=dependencies['store'],
            analysis_service=dependencies['analysis_service'],
            guideline_service=dependencies['guideline_service'],
            history_loader=dependencies['history_loader'],
            file_system=dependencies['file_system'],
            ui=dependencies['ui'],
            detection_service=dependencies['detection_service'],
            folder_watcher=dependencies['folder_watcher'],
        )
        logger.info("All dependencies initialized successfully.")
        return dependencies

    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if dependencies.get('ui') is not None:
            dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        sys.exit(1)


_dependencies: Optional[Dict[str, Any]] = None


def get_dependencies() -> Dict[str, Any]:
    """Returns the wired dependencies, creating them on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def reset_dependencies() -> None:
    global _dependencies
    _dependencies = None


# --- Typer App Definition ---
app = typer.Typer(
    name="pdfcheck",
    help="pdfcheck: review PDF documents with an AI analyzer and keep the results inside the files.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, None]) -> None:
    """Manages running async functions from sync Typer commands."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        raise typer.Exit(code=130)
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        get_dependencies()['ui'].display_error(f"Command execution failed: {e}")
        raise typer.Exit(code=1)


# --- CLI Commands ---

PathsArgument = Annotated[
    List[str],
    typer.Argument(help="PDF files, directories or glob patterns."),
]

InstructionOption = Annotated[
    str,
    typer.Option("--instruction", "-i", help="Custom instruction passed to the analyzer."),
]


@app.command()
def analyze(
    paths: PathsArgument,
    compare: Annotated[
        bool,
        typer.Option("--compare", "-c", help="Analyze all files together as one comparison."),
    ] = False,
    instruction: InstructionOption = "",
):
    """Analyze PDF files individually, or together with --compare."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_analyze(paths, compare=compare, instruction=instruction))


@app.command()
def guidelines(
    paths: PathsArgument,
    folder: Annotated[
        Optional[str],
        typer.Option("--folder", "-f", help="Working folder for the analyzer (defaults to the first file's folder)."),
    ] = None,
    instruction: InstructionOption = "",
):
    """Generate review guidelines from previously analyzed files."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_guidelines(paths, folder=folder, instruction=instruction))


@app.command()
def history():
    """List previously analyzed files."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_history())


@app.command()
def status(
    paths: PathsArgument,
    instruction: InstructionOption = "",
):
    """Show the files' analysis state and which actions are available."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_status(paths, instruction=instruction))


@app.command()
def watch(
    folder: Annotated[str, typer.Argument(help="Folder to watch for new PDF files.")],
    duration: Annotated[
        Optional[float],
        typer.Option("--duration", "-d", help="Stop after this many seconds (default: until Ctrl+C)."),
    ] = None,
):
    """Track PDF files as they are created in a folder."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_watch(folder, duration=duration))


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
