"""
services/completion_service.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Completion gateway: sends one prompt to an ordered list of candidate models
over an OpenAI-compatible ``chat/completions`` endpoint and returns the first
answer any of them produces.

Candidates are tried strictly one after another, exactly once each.  Every
failure is normalised to a :class:`~core.errors.ProviderError` and recorded;
the chain halts at the first success.
"""

import logging
from typing import Sequence

import httpx

import core.config as config
from core.errors import ConfigError, ProviderError
from models.domain import AttemptOutcome, CompletionResult, SamplingParams
from services.prompt_service import AssembledPrompt
from services.response_normalizer import error_from_exception, normalize_response

logger = logging.getLogger(__name__)

_ENDPOINT_PATH = "chat/completions"  # relative, so base_url may carry a sub-path


class CompletionGateway:
    """Fallback chain over *candidates*, sharing one HTTP client and one set of sampling params."""

    def __init__(
        self,
        client: httpx.Client,
        candidates: Sequence[str],
        api_key: str,
        params: SamplingParams | None = None,
        timeout: float = config.REQUEST_TIMEOUT,
        referer: str | None = None,
        title: str | None = None,
    ) -> None:
        if not candidates:
            raise ValueError("at least one candidate model is required")
        self._client = client
        self.candidates: list[str] = list(candidates)
        self._api_key = api_key
        self.params = params or SamplingParams()
        self._timeout = timeout
        self._referer = referer
        self._title = title

    # -- lifecycle ---------------------------------------------------------
    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CompletionGateway":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- chain -------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._title:
            headers["X-Title"] = self._title
        return headers

    def attempt(self, candidate: str, messages: list[dict[str, str]]) -> AttemptOutcome:
        """Make exactly one request to *candidate*; never raises for provider failures."""
        payload = {"model": candidate, "messages": messages, **self.params.as_payload()}
        try:
            response = self._client.post(
                _ENDPOINT_PATH, json=payload, headers=self._headers(), timeout=self._timeout
            )
            answer = normalize_response(candidate, response)
        except httpx.HTTPError as exc:
            error = error_from_exception(candidate, exc)
        except ProviderError as exc:
            error = exc
        else:
            return AttemptOutcome(candidate=candidate, answer=answer)

        logger.warning(
            "Candidate %s failed (%s): %s", candidate, error.kind.value, error.detail
        )
        return AttemptOutcome(candidate=candidate, error=error)

    def complete(self, prompt: AssembledPrompt) -> CompletionResult:
        """Try each candidate in priority order until one answers."""
        messages = prompt.messages
        attempts: list[AttemptOutcome] = []
        for candidate in self.candidates:
            outcome = self.attempt(candidate, messages)
            attempts.append(outcome)
            if outcome.succeeded:
                logger.info(
                    "Answered by %s after %d attempt(s)", candidate, len(attempts)
                )
                break
        else:
            logger.error(
                "All %d candidate(s) failed: %s",
                len(attempts),
                ", ".join(f"{a.candidate}={a.error.kind.value}" for a in attempts),
            )
        return CompletionResult(attempts=tuple(attempts))


def build_gateway(transport: httpx.BaseTransport | None = None) -> CompletionGateway:
    """
    Create a gateway from the environment configuration.

    Parameters
    ----------
    transport:
        Optional httpx transport; tests pass an ``httpx.MockTransport``.

    Raises
    ------
    ConfigError
        When the API credential or the candidate list is missing.
    """
    if not config.COMPLETION_API_KEY:
        raise ConfigError(
            "Completion service is not configured",
            "OPENAI_API_KEY is not set",
        )
    if not config.CANDIDATE_MODELS:
        raise ConfigError(
            "Completion service is not configured",
            "CANDIDATE_MODELS is empty",
        )

    client = httpx.Client(
        base_url=config.COMPLETION_BASE_URL,
        timeout=config.REQUEST_TIMEOUT,
        transport=transport,
    )
    params = SamplingParams(
        temperature=config.TEMPERATURE,
        top_p=config.TOP_P,
        top_k=config.TOP_K,
        max_tokens=config.MAX_OUTPUT_TOKENS,
    )
    return CompletionGateway(
        client,
        config.CANDIDATE_MODELS,
        config.COMPLETION_API_KEY,
        params=params,
        timeout=config.REQUEST_TIMEOUT,
        referer=config.HTTP_REFERER,
        title=config.APP_TITLE,
    )
