"""Article analysis client using LiteLLM for multi-provider support."""

import json
import logging
from typing import Optional

from litellm import completion
from pydantic import ValidationError

from miaobi.config import AISettings, Provider
from miaobi.llm.prompts import JSON_SYSTEM_PROMPT, build_analysis_prompt
from miaobi.llm.schema import ANALYSIS_RESPONSE_SCHEMA, AnalysisResult

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_API_BASE = "https://api.openai.com/v1"


class AnalysisError(Exception):
    """The analysis request failed; the message is meant for the user."""

    pass


class AnalysisClient:
    """Send an article to the configured provider and validate the reply.

    A single request is made per call. There is no retry: any failure
    (network, provider error, empty or malformed reply) is raised as
    AnalysisError.
    """

    def __init__(self, settings: AISettings, temperature: Optional[float] = None) -> None:
        """Initialize the client.

        Args:
            settings: Provider configuration supplied by the caller
            temperature: Optional sampling temperature
        """
        self.settings = settings
        self.temperature = temperature

    @property
    def model(self) -> str:
        """LiteLLM model string, e.g. ``gemini/gemini-2.5-flash``."""
        return f"{self.settings.provider.value}/{self.settings.resolved_model}"

    @property
    def api_base(self) -> Optional[str]:
        """API base url for the request, None for the provider default."""
        base_url = self.settings.base_url.strip().rstrip("/")
        if self.settings.provider == Provider.OPENAI:
            return f"{base_url}/v1" if base_url else OPENAI_DEFAULT_API_BASE
        return base_url or None

    def build_request(self, title: str, content: str) -> dict:
        """Build the keyword arguments for ``litellm.completion``."""
        provider = self.settings.provider
        prompt = build_analysis_prompt(title, content, provider)

        if provider == Provider.OPENAI:
            messages = [
                {"role": "system", "content": JSON_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
            response_format = {"type": "json_object"}
        else:
            messages = [{"role": "user", "content": prompt}]
            response_format = {
                "type": "json_object",
                "response_schema": ANALYSIS_RESPONSE_SCHEMA,
            }

        request = {
            "model": self.model,
            "messages": messages,
            "api_key": self.settings.api_key,
            "api_base": self.api_base,
            "response_format": response_format,
        }
        if self.temperature is not None:
            request["temperature"] = self.temperature
        return request

    def analyze(self, title: str, content: str) -> AnalysisResult:
        """Analyze an article.

        Args:
            title: Article title (may be empty)
            content: Article body

        Returns:
            The validated analysis

        Raises:
            AnalysisError: On empty input, missing API key, provider failure
                or a reply that does not match the analysis schema
        """
        if not content.strip():
            raise AnalysisError("文章内容不能为空")
        if not self.settings.api_key.strip():
            raise AnalysisError("API Key 未配置。请先在设置中配置 API Key。")

        request = self.build_request(title, content)
        logger.debug("Requesting analysis from %s", self.model)

        try:
            response = completion(**request)
        except Exception as e:
            logger.error("AI analysis request failed: %s", e)
            raise AnalysisError(str(e) or f"{self.settings.provider.value} request failed") from e

        return parse_analysis(_message_content(response))


def _message_content(response) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        content = None
    if not content:
        raise AnalysisError("No response from AI")
    return content


def parse_analysis(text: str) -> AnalysisResult:
    """Parse and validate a JSON analysis reply.

    Raises:
        AnalysisError: If the text is not JSON or does not match the schema
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.error("AI reply is not valid JSON: %s", e)
        raise AnalysisError(f"AI 返回的结果不是有效的 JSON: {e}") from e

    try:
        return AnalysisResult.model_validate(data)
    except (ValidationError, RecursionError) as e:
        logger.error("AI reply does not match the analysis schema: %s", e)
        raise AnalysisError(f"AI 返回的结果格式不完整: {e}") from e


def analyze_article(
    title: str,
    content: str,
    settings: AISettings,
) -> AnalysisResult:
    """Analyze an article with the given provider settings."""
    return AnalysisClient(settings).analyze(title, content)
