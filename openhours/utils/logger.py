"""
Logging utilities for the hours engine.
Supports both normal mode (rich console output) and debug mode (detailed logs).
"""

import sys
import logging
from pathlib import Path
from typing import Optional, List
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table


class HoursLogger:
    """
    Logger for the hours engine with rich console output and optional debug mode.
    """

    def __init__(self, debug_mode: bool = False, debug_log_file: Optional[str] = None):
        self.debug_mode = debug_mode
        self.debug_log_file = debug_log_file
        self.console = Console()

        # Setup Python logging
        self._setup_logging()

    def _setup_logging(self):
        """Configure Python logging."""
        self.logger = logging.getLogger('openhours')
        self.logger.setLevel(logging.DEBUG if self.debug_mode else logging.INFO)

        # Remove existing handlers
        self.logger.handlers = []

        # Console handler
        if not self.debug_mode:
            console_handler = RichHandler(console=self.console, rich_tracebacks=True)
        else:
            console_handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            console_handler.setFormatter(formatter)

        console_handler.setLevel(logging.INFO)
        self.logger.addHandler(console_handler)

        # File handler for debug mode
        if self.debug_mode and self.debug_log_file:
            log_path = Path(self.debug_log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path, mode='a')
            file_handler.setLevel(logging.DEBUG)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def print_header(self, title: str):
        """Print a header/banner."""
        self.console.print(Panel(title, style="bold blue"))

    def print_section(self, title: str):
        """Print a section header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]")

    def info(self, message: str):
        self.logger.info(message)

    def debug(self, message: str):
        self.logger.debug(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str, exc_info: bool = False):
        self.logger.error(message, exc_info=exc_info)

    def success(self, message: str):
        """Log success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_table(self, title: str, data: List[list], headers: List[str]):
        """Print a formatted table."""
        table = Table(title=title)
        for header in headers:
            table.add_column(header)
        for row in data:
            table.add_row(*[str(cell) for cell in row])
        self.console.print(table)

    def print_summary(self, total: int, refreshed: int, failed: int, duration: float, skipped: int = 0):
        """Print refresh summary."""
        self.print_section("Refresh Complete")

        table = Table(show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="bold")
        for metric, value in [
            ["Total places", total],
            ["Refreshed", refreshed],
            ["Already fresh", skipped],
            ["Failed", failed],
            ["Duration", f"{duration:.1f}s"],
        ]:
            table.add_row(str(metric), str(value))
        self.console.print(table)

    def save_debug_html(self, html_content: str, place_name: str, page_name: str):
        """Save a fetched place page in debug mode, for offline extraction work."""
        if not self.debug_mode:
            return

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe_name = "".join(c for c in place_name if c.isalnum() or c in (' ', '_')).strip()
        safe_name = safe_name.replace(' ', '_') or 'place'

        html_dir = Path('./debug/html')
        html_dir.mkdir(parents=True, exist_ok=True)

        filename = html_dir / f"{safe_name}_{page_name}_{timestamp}.html"

        with open(filename, 'w', encoding='utf-8') as f:
            f.write(html_content)

        self.debug(f"HTML snapshot saved: {filename}")


# Global logger instance
_logger_instance: Optional[HoursLogger] = None


def get_logger() -> HoursLogger:
    """Get the global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = HoursLogger()
    return _logger_instance


def init_logger(debug_mode: bool = False, debug_log_file: Optional[str] = None) -> HoursLogger:
    """Initialize the global logger."""
    global _logger_instance
    _logger_instance = HoursLogger(debug_mode=debug_mode, debug_log_file=debug_log_file)
    return _logger_instance
