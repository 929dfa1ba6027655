"""Receipt field extraction through an OpenRouter-compatible chat completion API."""

import base64
import json
import logging
import re
from typing import Any

import requests
from pydantic import ValidationError

from ..core.config import AIConfig
from ..core.models import AIExtractionResult

logger = logging.getLogger(__name__)

MULTIMODAL_MODEL_FRAGMENTS = ["claude-3", "gpt-4o", "gpt-4-turbo", "gpt-4-vision", "llava", "gemini", "qwen"]

AI_CATEGORIES = [
    "Groceries",
    "Utilities",
    "Food",
    "Transport",
    "Shopping",
    "Health",
    "Entertainment",
    "Travel",
    "Tax",
    "Credit Card",
    "Other",
]

LANGUAGE_INSTRUCTIONS = {
    "zh-TW": "請以繁體中文進行分析與回答。金額若為新臺幣，請明確標示 TWD 或 NT$。",
    "en": "Analyze and respond in English. If currency is USD, clearly mark it as USD or $.",
}

JSON_STRUCTURE_INSTRUCTION = (
    'Respond ONLY with a valid JSON object containing these fields: "amount" (numeric or null), '
    '"date" ("YYYY-MM-DD" or null), "vendor" (string or null), '
    f'"category" (string from list: {", ".join(AI_CATEGORIES)}, or null), '
    '"currency" (string like "USD", "TWD", or null).\n'
    'Example: {"amount": 123.45, "date": "2023-10-26", "vendor": "SuperMart", '
    '"category": "Groceries", "currency": "USD"}'
)

FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class AIExtractionError(Exception):
    """Reply from the AI service that could not be used."""

    def __init__(self, message: str, raw_response: str | None = None):
        super().__init__(message)
        self.raw_response = raw_response


def is_multimodal(model: str) -> bool:
    """Whether ``model`` is assumed to accept image input."""
    lowered = model.lower()
    return any(fragment in lowered for fragment in MULTIMODAL_MODEL_FRAGMENTS)


def system_prompt(language: str) -> str:
    instruction = LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["en"])
    return (
        "You are an expert OCR data extraction and categorization AI.\n"
        "Analyze the provided data (image and/or text) from a bill or receipt.\n"
        "Extract the total amount, date, vendor/store name, a suitable category, and the currency.\n"
        f"{instruction}\n"
        f"{JSON_STRUCTURE_INSTRUCTION}"
    )


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    content = content.strip()
    match = FENCE_RE.match(content)
    if match and match.group(2):
        return match.group(2).strip()
    return content


def parse_reply(content: Any) -> AIExtractionResult:
    """Parse the model's reply into a result; raises ``AIExtractionError``."""
    raw = content if isinstance(content, str) else json.dumps(content)
    try:
        data = json.loads(strip_code_fence(raw))
        if not isinstance(data, dict):
            raise ValueError("reply is not a JSON object")
        return AIExtractionResult.model_validate({**data, "raw_response": raw})
    except (ValueError, ValidationError) as e:
        logger.error("Error parsing AI JSON response: %s\nRaw AI response string: %s", e, raw)
        raise AIExtractionError("Failed to parse AI's JSON response.", raw) from e


class AIExtractionAdapter:
    """Sends receipt text and/or image to the chat completion API."""

    def __init__(self, config: AIConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    @property
    def model(self) -> str:
        return self.config.resolve_ocr_model()

    def build_request(
        self,
        raw_text: str,
        image: bytes | None = None,
        image_mime_type: str | None = None,
        language: str | None = None,
    ) -> dict[str, Any]:
        """Build the request body.

        The image is attached only for models assumed to be multimodal.
        Raises ``AIExtractionError`` when there is nothing to analyze.
        """
        content: list[dict[str, Any]] = []
        if image and image_mime_type and is_multimodal(self.model):
            encoded = base64.b64encode(image).decode("ascii")
            content.append({"type": "image_url", "image_url": {"url": f"data:{image_mime_type};base64,{encoded}"}})

        if raw_text and raw_text.strip():
            text = (
                "Analyze the provided data.\n"
                "Prioritize information from the image if available, but use the OCR text as a strong reference:\n"
                f"OCR Text:\n{raw_text}"
            )
        elif content:
            text = "Analyze the provided image from a bill or receipt."
        else:
            raise AIExtractionError("No image or text provided for AI analysis.")
        content.append({"type": "text", "text": text})

        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt(language or self.config.language)},
                {"role": "user", "content": content},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "response_format": {"type": "json_object"},
        }

    def extract(
        self,
        raw_text: str,
        image: bytes | None = None,
        image_mime_type: str | None = None,
        language: str | None = None,
    ) -> AIExtractionResult:
        """Ask the model for the receipt fields.

        Failures come back as a result with ``error`` set; nothing is raised.
        """
        if not self.config.api_key:
            return AIExtractionResult(error="OpenRouter API Key is not set.")

        try:
            body = self.build_request(raw_text, image, image_mime_type, language)
        except AIExtractionError as e:
            return AIExtractionResult(error=str(e))

        try:
            response = self.session.post(
                self.config.base_url,
                headers={"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"},
                json=body,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Error during AI OCR enhancement: %s", e)
            return AIExtractionResult(error=f"Network or other error during AI enhancement: {e}")

        response_text = response.text
        if not response.ok:
            logger.error("OpenRouter AI OCR error %s for model %s: %s", response.status_code, self.model, response_text)
            return AIExtractionResult(
                error=f"AI extraction failed: {response.status_code} {_error_message(response)}",
                raw_response=response_text,
            )

        try:
            data = json.loads(response_text)
        except ValueError as e:
            logger.error("AI service returned a non-JSON body: %s", e)
            return AIExtractionResult(error="AI service returned an unreadable response.", raw_response=response_text)

        content = _first_choice_content(data)
        if not content:
            return AIExtractionResult(error="AI returned no content.", raw_response=json.dumps(data))

        try:
            return parse_reply(content)
        except AIExtractionError as e:
            return AIExtractionResult(error=str(e), raw_response=e.raw_response)


def _first_choice_content(data: Any) -> Any:
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None


def _error_message(response: requests.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason or ""
