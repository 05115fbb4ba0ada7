"""Domain exceptions raised across the orchestration layer."""


class PdfCheckError(Exception):
    """Base class for pdfcheck errors."""


class BackendError(PdfCheckError):
    """The analysis backend rejected a request.

    The string form is the human-readable message shown to the user and
    stored on the affected file records.
    """


class SubscriptionError(PdfCheckError):
    """Opening an event-channel subscription failed."""

    def __init__(self, channel: str, original_exception: Exception):
        self.channel = channel
        self.original_exception = original_exception
        super().__init__(f"Could not subscribe to '{channel}': {original_exception}")


class RunInProgressError(PdfCheckError):
    """A run was requested while another one is still in flight."""

    def __init__(self, active_run: str, requested_run: str):
        self.active_run = active_run
        self.requested_run = requested_run
        super().__init__(
            f"Cannot start {requested_run} run: {active_run} run still in progress."
        )
