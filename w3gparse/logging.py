import logging
from rich.console import Console
from rich.logging import RichHandler


_logging_configured: bool = False

def configure_logging(debug: bool = False, quiet: bool = False):
    """Send log output to stderr through rich; only the first call has any effect.

    The decoder logs every record at DEBUG and per-block summaries at INFO, so
    quiet drops to WARNING for batch conversions."""
    global _logging_configured
    if _logging_configured:
        return
    _logging_configured = True
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.captureWarnings(True)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s" if debug else "%(message)s",
        handlers=[
            RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
        ],
    )
