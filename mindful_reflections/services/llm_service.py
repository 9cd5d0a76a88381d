"""
LLM service
Emotion analysis of journal entries and check-in question generation
"""

import json
import re
from typing import List, Dict, Any, Optional
import httpx
from mindful_reflections.models.journal import AnalysisResult
from mindful_reflections.utils.config import settings
from mindful_reflections.utils.errors import (
    AnalysisFormatError,
    AnalysisGatewayError,
    EmptyQuestionError,
    GatewayError,
)
from mindful_reflections.utils.logger import logger

# Matches ```json ... ``` or ``` ... ```
FENCE_PATTERN = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

ANALYSIS_PROMPT = """Analyze the following journal entry to determine the primary emotional state (e.g., happy, sad, frustrated, excited, anxious, calm, contemplative, grateful) and extract 2-4 key qualities or themes (e.g., achievement, interpersonal conflict, self-doubt, gratitude, problem-solving, future planning).
Return the response strictly as a JSON object with keys "emotion" (string) and "qualities" (an array of strings).

Journal Entry:
---
{content}
---

JSON Response:"""

QUESTION_PROMPT = """Based on this recent journal insight:
Emotion: "{emotion}"
Qualities: "{qualities}"

Generate a single, supportive, and empathetic follow-up question for a check-in. The question should be open-ended and encourage reflection.
For example:
- If emotion was "frustrated" and qualities "unappreciated, unsure", a question could be: "Reflecting on feeling {emotion} about {qualities_and}, what's one small step you could consider today, or how are you feeling about that situation now?"
- If emotion was "excited" and qualities "achievement, hard work", a question could be: "It sounds like you experienced something exciting related to {qualities_and}! How can you carry that positive energy forward or celebrate that success today?"

The question should be phrased naturally and directly to the person. Avoid starting with "The AI suggests..." or similar meta-commentary. Just provide the question.

Question:"""


def parse_json_from_text(text: str) -> Any:
    """
    Parse JSON out of an LLM reply, tolerating a surrounding code fence

    Args:
        text: raw reply text

    Returns:
        the decoded JSON value

    Raises:
        AnalysisFormatError: when no valid JSON can be recovered
    """
    json_str = text.strip()
    match = FENCE_PATTERN.match(json_str)
    if match and match.group(2):
        json_str = match.group(2).strip()

    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {e}")
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            raise AnalysisFormatError(f"AI returned malformed JSON. Raw text: {text[:1000]}") from e


def strip_wrapping_quotes(text: str) -> str:
    """Remove one pair of double quotes around the whole text (a lone quote becomes empty)"""
    if len(text) >= 1 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


class LLMService:
    """LLM service"""

    def __init__(self, api_base: str = None, model: str = None, timeout: float = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the LLM service

        Args:
            api_base: OpenAI-compatible API base URL
            model: model name
            timeout: request timeout in seconds
            transport: custom httpx transport (tests)
        """
        self.api_base = (api_base or settings.llm_api_base).rstrip("/")
        self.model = model or settings.llm_model
        self.timeout = timeout if timeout is not None else settings.llm_timeout
        self.transport = transport

    async def chat(self, api_key: str, messages: List[Dict[str, str]], temperature: float = 0.7,
                   response_format: Optional[Dict[str, str]] = None) -> str:
        """
        Call the chat completions endpoint

        Args:
            api_key: LLM API key
            messages: messages, format [{"role": "user", "content": "..."}]
            temperature: sampling temperature
            response_format: optional structured output format

        Returns:
            the reply text

        Raises:
            GatewayError: network, HTTP or response shape failure
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format:
            payload["response_format"] = response_format

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_base}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json"
                    },
                    json=payload
                )
        except httpx.HTTPError as e:
            logger.error(f"LLM request failed: {e}")
            raise GatewayError(f"LLM request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"LLM API error: {response.status_code} - {response.text[:500]}")
            raise GatewayError(f"LLM API error {response.status_code}: {response.text[:500]}")

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected LLM response: {response.text[:500]}")
            raise GatewayError(f"Unexpected LLM response: {e}") from e
        return content or ""

    async def analyze_entry(self, api_key: str, text: str) -> AnalysisResult:
        """
        Extract the primary emotion and key themes of a journal entry

        Args:
            api_key: LLM API key
            text: journal entry text

        Returns:
            analysis result

        Raises:
            AnalysisGatewayError: the LLM call failed
            AnalysisFormatError: the reply is not the expected JSON object
        """
        messages = [{"role": "user", "content": ANALYSIS_PROMPT.format(content=text)}]
        try:
            reply = await self.chat(
                api_key,
                messages,
                temperature=0.3,
                response_format={"type": "json_object"}
            )
        except GatewayError as e:
            raise AnalysisGatewayError(f"LLM API error during analysis: {e}") from e

        data = parse_json_from_text(reply)
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("emotion"), str)
            or not isinstance(data.get("qualities"), list)
            or not all(isinstance(q, str) for q in data["qualities"])
        ):
            raise AnalysisFormatError("AI response is not in the expected JSON format for emotion analysis.")

        summary = data.get("summary")
        result = AnalysisResult(
            emotion=data["emotion"],
            qualities=data["qualities"],
            summary=summary if isinstance(summary, str) else None,
        )
        logger.info(f"Entry analyzed: emotion={result.emotion}, qualities={result.qualities}")
        return result

    async def generate_check_in_question(self, api_key: str, emotion: str, qualities: List[str]) -> str:
        """
        Generate a follow-up check-in question

        Args:
            api_key: LLM API key
            emotion: emotion of the source entry
            qualities: themes of the source entry

        Returns:
            the question text

        Raises:
            GatewayError: the LLM call failed
            EmptyQuestionError: the LLM returned a blank question
        """
        prompt = QUESTION_PROMPT.format(
            emotion=emotion,
            qualities=", ".join(qualities),
            qualities_and=" and ".join(qualities),
        )
        reply = await self.chat(api_key, [{"role": "user", "content": prompt}], temperature=0.7)

        question = strip_wrapping_quotes(reply.strip())
        if not question.strip():
            raise EmptyQuestionError("AI returned an empty question.")
        return question
