from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class InboxJob:
    """A file dropped into an owner's inbox directory."""

    path: Path
    owner_id: str
