"""Single-flight auto-fill request.

An ``ExtractionTask`` is idle until run, pending while the provider call is
outstanding, and resolved afterwards with either a fragment or an error.
While pending, further runs are refused without contacting the provider.
All provider failures are converted to an ``ExtractionResult`` here.
"""

import logging
from enum import Enum

from invoice_editor.extraction.base import ExtractionProvider, ExtractionResult
from invoice_editor.shared.errors import (
    ConfigurationError,
    ExtractionError,
    ExtractionInProgressError,
)

logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = "Failed to generate invoice data. Please try again."


class TaskState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"


class ExtractionTask:
    """Runs at most one extraction request at a time."""

    def __init__(self, provider: ExtractionProvider) -> None:
        self.provider = provider
        self.state = TaskState.IDLE
        self.result: ExtractionResult | None = None

    @property
    def is_pending(self) -> bool:
        return self.state is TaskState.PENDING

    async def run(self, text: str) -> ExtractionResult:
        """Issue one extraction request for ``text``.

        Returns:
            ExtractionResult; ``error_kind`` is ``busy`` if a request was already pending
        """
        if self.is_pending:
            return ExtractionResult(
                success=False,
                error=str(ExtractionInProgressError()),
                error_kind="busy",
                provider=self.provider.provider_name,
            )

        self.state = TaskState.PENDING
        self.result = None
        try:
            fragment = await self.provider.extract(text)
            result = ExtractionResult(
                fragment=fragment, success=True, provider=self.provider.provider_name
            )
        except ConfigurationError as e:
            logger.warning(f"Auto-fill unavailable: {e}")
            result = ExtractionResult(
                success=False,
                error=e.message,
                error_kind="configuration",
                provider=self.provider.provider_name,
            )
        except ExtractionError as e:
            logger.error(f"Auto-fill extraction failed: {e}")
            result = ExtractionResult(
                success=False,
                error=EXTRACTION_FAILED_MESSAGE,
                error_kind="extraction",
                provider=self.provider.provider_name,
            )
        except Exception as e:
            logger.exception(f"Unexpected auto-fill failure: {e}")
            result = ExtractionResult(
                success=False,
                error=EXTRACTION_FAILED_MESSAGE,
                error_kind="extraction",
                provider=self.provider.provider_name,
            )
        finally:
            self.state = TaskState.RESOLVED

        self.result = result
        return result
