"""
Progress reporting and import statistics.
"""

import logging
from typing import Dict, List


class Reporter:
    """
    Sink for progress and diagnostic messages. The base class discards
    everything; subclasses decide where messages go.
    """

    def comment(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def start_progress(self, total: int) -> None:
        pass

    def advance(self) -> None:
        pass

    def finish_progress(self) -> None:
        pass


class LoggingReporter(Reporter):
    """
    Reporter that writes through the logging module.

    Progress is logged every ``every`` records and at the end of a block.
    """

    def __init__(self, every: int = 50):
        self.every = max(1, every)
        self.total = 0
        self.current = 0

    def comment(self, message: str) -> None:
        logging.info(message)

    def error(self, message: str) -> None:
        logging.error(message)

    def start_progress(self, total: int) -> None:
        self.total = total
        self.current = 0

    def advance(self) -> None:
        self.current += 1
        if self.current % self.every == 0:
            logging.info(f"  {self.current}/{self.total} records")

    def finish_progress(self) -> None:
        logging.info(f"  {self.current}/{self.total} records done")


class ImportStats:
    """Track import statistics for reporting."""

    def __init__(self):
        self.created: Dict[str, int] = {}
        self.updated: Dict[str, int] = {}
        self.skipped_records: Dict[str, int] = {}
        self.skipped_users = 0
        self.aborted_blocks: List[str] = []
        self.errors: List[str] = []

    def record_created(self, name: str):
        self.created[name] = self.created.get(name, 0) + 1

    def record_updated(self, name: str):
        self.updated[name] = self.updated.get(name, 0) + 1

    def record_skipped(self, name: str):
        self.skipped_records[name] = self.skipped_records.get(name, 0) + 1

    def record_skipped_user(self):
        self.skipped_users += 1

    def record_aborted(self, block: str, message: str):
        self.aborted_blocks.append(block)
        self.errors.append(message)

    def record_error(self, message: str):
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        """Generate a summary report."""
        lines = ["\n=== Import Summary ==="]

        if self.created:
            lines.append("\nCreated:")
            for name, count in sorted(self.created.items()):
                lines.append(f"  {name}: {count}")

        if self.updated:
            lines.append("\nUpdated:")
            for name, count in sorted(self.updated.items()):
                lines.append(f"  {name}: {count}")

        if self.skipped_records:
            lines.append("\nSkipped records:")
            for name, count in sorted(self.skipped_records.items()):
                lines.append(f"  {name}: {count}")

        if self.skipped_users:
            lines.append(f"\nExisting users left untouched: {self.skipped_users}")

        if self.errors:
            lines.append(f"\nErrors: {len(self.errors)}")
            for error in self.errors[:10]:
                lines.append(f"  - {error}")
            if len(self.errors) > 10:
                lines.append(f"  ... and {len(self.errors) - 10} more")

        return "\n".join(lines)
