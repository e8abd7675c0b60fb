from dataclasses import dataclass
from enum import Enum


class PipelineState(str, Enum):
    """Lifecycle of one document through an ingestion run."""

    RECEIVED = "received"
    CLASSIFIED = "classified"
    REJECTED = "rejected"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    EXTRACTION_FAILED = "extraction-failed"
    STORED = "stored"
    DELETED = "deleted"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification: a stage label and the run's overall percent."""

    stage: str
    percent: int
    error: str | None = None
