import asyncio
import logging
from abc import ABC, abstractmethod

from rewriter.adapters.llm.classification import classify_exception
from rewriter.adapters.llm.types import (
	GenerationFailure,
	GenerationOutcome,
	GenerationRequest,
	GenerationSuccess,
)
from rewriter.core.errors import ErrorClass

logger = logging.getLogger(__name__)


class AbstractGenerationClient(ABC):
	"""Interface for clients that perform exactly one upstream generation call.

	Subclasses implement ``_complete``; ``generate`` bounds it with a timeout
	and turns any raised error into a classified ``GenerationFailure``. No
	retries happen here: retry policy belongs to the caller.
	"""

	provider: str = "unknown"

	def __init__(self, *, timeout_seconds: float) -> None:
		self.timeout_seconds = timeout_seconds

	@abstractmethod
	async def _complete(self, request: GenerationRequest) -> str | None:
		"""Send the request upstream and return the generated text.

		Args:
			request: Fully built generation request.

		Returns:
			The generated text, or None when the provider returned no text.

		Raises:
			Exception: Any provider/transport error; classified by ``generate``.
		"""
		...

	async def aclose(self) -> None:
		"""Release the provider SDK's HTTP resources."""

	async def generate(self, request: GenerationRequest, *, require_text: bool = True) -> GenerationOutcome:
		"""Run one upstream call and return a tagged outcome.

		Args:
			request: Fully built generation request.
			require_text: When True, an empty reply is a failure (502). When
				False, a call that completed counts as success even without text.

		Returns:
			GenerationSuccess with the text, or GenerationFailure with its class.
		"""
		try:
			text = await asyncio.wait_for(self._complete(request), timeout=self.timeout_seconds)
		except TimeoutError:
			failure = GenerationFailure(
				classification=ErrorClass.UNKNOWN,
				message=f"Upstream request timed out after {self.timeout_seconds:g}s",
				raw_detail="timeout",
				http_status_hint=500,
				model_id=request.model_id,
			)
			self._log_failure(failure)
			return failure
		except Exception as exc:
			classified = classify_exception(exc)
			failure = GenerationFailure(
				classification=classified.classification,
				message=classified.message,
				raw_detail=classified.raw_detail,
				http_status_hint=classified.http_status,
				model_id=request.model_id,
			)
			self._log_failure(failure)
			return failure

		if require_text and (not text or not text.strip()):
			failure = GenerationFailure(
				classification=ErrorClass.UNKNOWN,
				message="Upstream model returned an empty response",
				raw_detail="empty_response",
				http_status_hint=502,
				model_id=request.model_id,
			)
			self._log_failure(failure)
			return failure

		return GenerationSuccess(text=text or "", model_id=request.model_id)

	def _log_failure(self, failure: GenerationFailure) -> None:
		logger.warning(
			"llm.call_failed",
			extra={
				"provider": self.provider,
				"model": failure.model_id,
				"classification": failure.classification.value,
				"http_status": failure.http_status_hint,
				"error_detail": failure.raw_detail,
			},
		)
