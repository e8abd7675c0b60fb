import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from docvault.classifier.format_classifier import FormatCategory
from docvault.database.models import DocumentRecord, ExtractionMethod
from docvault.logging.logger import Log
from docvault.processor.cancellation import CancellationToken
from docvault.processor.models import PipelineState
from docvault.processor.progress import ProgressReporter


@dataclass(slots=True)
class PipelineContext:
    record: DocumentRecord
    reporter: ProgressReporter
    cancel_token: CancellationToken | None = None
    # Re-extraction of a stored record: persisting must not recreate it
    existing: bool = False
    state: PipelineState = PipelineState.RECEIVED
    category: FormatCategory = FormatCategory.UNSUPPORTED
    extracted_text: str = ""
    extraction_method: ExtractionMethod = ExtractionMethod.NONE
    extraction_error: str | None = None
    page_count: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def advance(self, state: PipelineState) -> None:
        Log.info(
            f"Document {self.record.id}: {self.state.value} -> {state.value}",
            owner=self.record.owner_id,
        )
        self.state = state


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
