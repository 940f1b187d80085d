"""
Append-only audit trail of completed hardening steps.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .models import ActionLogEntry

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_LINE = re.compile(r'^\[(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\] (.*)$')


def format_entry(entry: ActionLogEntry) -> str:
    return f"[{entry.timestamp.strftime(TIMESTAMP_FORMAT)}] {entry.description}"


def parse_entry(line: str) -> Optional[ActionLogEntry]:
    """Parse one log line; None for lines not written by this toolkit."""
    match = _LINE.match(line.rstrip('\n'))
    if not match:
        return None
    return ActionLogEntry(
        timestamp=datetime.strptime(match.group(1), TIMESTAMP_FORMAT),
        description=match.group(2),
    )


class ActionLog:
    """One line per completed action, never rewritten."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def append(self, description: str, when: Optional[datetime] = None) -> ActionLogEntry:
        entry = ActionLogEntry(timestamp=when or datetime.now(), description=description)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'a') as f:
            f.write(format_entry(entry) + "\n")
        logger.debug("Action logged: %s", description)
        return entry

    def entries(self) -> List[ActionLogEntry]:
        if not self.path.exists():
            return []
        with open(self.path, 'r') as f:
            return [entry for entry in (parse_entry(line) for line in f) if entry]
