"""Client for the external LLM analysis service (Anthropic Messages API).

Two operations:

- extract_metadata(): a forced tool call whose input is validated into
  JobMetadata; any failure raises ExtractionError.
- summarize(): a short free-text match rationale; any failure raises
  SummaryError.

Both are blocking; the scoring stage awaits them with asyncio.to_thread.
"""

from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from jobhunter.config.models import AnalysisConfig
from jobhunter.logging import get_logger

from .exceptions import AnalysisError, ExtractionError, SummaryError
from .models import INTERVIEW_STYLE_VALUES, ROLE_TYPE_VALUES, SENIORITY_VALUES, JobMetadata

logger = get_logger(__name__, component="scoring")

EXTRACTION_TOOL = {
    "name": "extract_job_metadata",
    "description": "Extract structured metadata from a job posting",
    "input_schema": {
        "type": "object",
        "properties": {
            "seniority": {
                "type": "string",
                "enum": list(SENIORITY_VALUES),
                "description": "The seniority level of the role",
            },
            "remote_eligible": {
                "type": "boolean",
                "description": "Whether the role allows remote work for the candidate",
            },
            "interview_style": {
                "type": "string",
                "enum": list(INTERVIEW_STYLE_VALUES),
                "description": "The interview process style",
            },
            "role_type": {
                "type": "string",
                "enum": list(ROLE_TYPE_VALUES),
                "description": "The type of engineering role",
            },
        },
        "required": ["seniority", "remote_eligible", "interview_style", "role_type"],
    },
}


def _content_blocks(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return the dict blocks of a Messages response; anything else is ignored."""
    content = body.get("content")
    if not isinstance(content, list):
        return []
    return [block for block in content if isinstance(block, dict)]


class AnalysisClient:
    """Thin requests-based client for metadata extraction and summaries.

    Without an API key the client is disabled: extraction raises
    ExtractionError (so callers fall back to defaults) and summaries raise
    SummaryError.
    """

    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"
    EXTRACTION_MAX_CHARS = 4000
    SUMMARY_MAX_CHARS = 3000

    def __init__(
        self,
        api_key: Optional[str],
        settings: Optional[AnalysisConfig] = None,
        candidate_profile: str = "",
    ):
        self.api_key = api_key
        self.settings = settings or AnalysisConfig()
        self.candidate_profile = candidate_profile
        self._session = requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self._session.close()

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to the Messages API and return the parsed body.

        Raises:
            AnalysisError: On transport failure, HTTP error status or invalid JSON
        """
        if not self.enabled:
            raise AnalysisError("Analysis service is not configured (ANTHROPIC_API_KEY unset)")

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }
        try:
            response = self._session.post(
                self.API_URL, headers=headers, json=payload, timeout=self.settings.timeout
            )
        except requests.exceptions.RequestException as e:
            raise AnalysisError(f"Analysis request failed: {e}") from e

        if response.status_code >= 400:
            raise AnalysisError(f"Analysis service returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise AnalysisError(f"Analysis service returned invalid JSON: {e}") from e
        if not isinstance(body, dict):
            raise AnalysisError("Analysis service returned an unexpected payload")
        return body

    def extract_metadata(self, title: str, description: str, location: Optional[str] = None) -> JobMetadata:
        """Extract seniority, remote eligibility, interview style and role type.

        Raises:
            ExtractionError: If the call fails or the tool input does not validate
        """
        prompt = f"Analyze this job posting and extract metadata.\n\nTitle: {title}\n"
        if location:
            prompt += f"Location: {location}\n"
        prompt += f"\nDescription:\n{description[: self.EXTRACTION_MAX_CHARS]}"

        payload = {
            "model": self.settings.extraction_model,
            "max_tokens": 1024,
            "tools": [EXTRACTION_TOOL],
            "tool_choice": {"type": "tool", "name": EXTRACTION_TOOL["name"]},
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            body = self._post(payload)
        except AnalysisError as e:
            raise ExtractionError(str(e)) from e

        tool_input = next(
            (block.get("input") for block in _content_blocks(body) if block.get("type") == "tool_use"),
            None,
        )
        if tool_input is None:
            raise ExtractionError("No tool use in analysis response")

        try:
            return JobMetadata.model_validate(tool_input)
        except ValidationError as e:
            raise ExtractionError(f"Tool input failed validation: {e}") from e

    def summarize(self, title: str, description: str, metadata: JobMetadata) -> str:
        """Write a 2-3 sentence match rationale.

        Raises:
            SummaryError: If the call fails or the response has no text
        """
        prompt = (
            f"You are evaluating a job posting for this candidate: {self.candidate_profile}\n\n"
            "Write a 2-3 sentence match assessment. Focus on why this role is a good or poor fit, "
            "key strengths of the match, and any concerns.\n\n"
            f"Job Title: {title}\n"
            f"Seniority: {metadata.seniority}\n"
            f"Role Type: {metadata.role_type}\n"
            f"Remote: {'Yes' if metadata.remote_eligible else 'No'}\n"
            f"Interview Style: {metadata.interview_style}\n\n"
            f"Description:\n{description[: self.SUMMARY_MAX_CHARS]}"
        )
        payload = {
            "model": self.settings.summary_model,
            "max_tokens": 256,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            body = self._post(payload)
        except AnalysisError as e:
            raise SummaryError(str(e)) from e

        text = next(
            (block.get("text") for block in _content_blocks(body) if block.get("type") == "text"),
            None,
        )
        if not isinstance(text, str) or not text.strip():
            raise SummaryError("No text in summary response")

        logger.debug(
            f"Summary generated for '{title}'",
            extra={"event": "scoring.summary.generated", "chars": len(text)},
        )
        return text.strip()
