"""Short personalised financial advice from an OpenRouter-compatible chat model."""

import json
import logging
from typing import Any

import requests

from ..core.config import DEFAULT_OPENROUTER_MODEL, AIConfig
from ..core.models import FinancialTipResult

logger = logging.getLogger(__name__)

TIP_MAX_TOKENS = 150
TIP_TEMPERATURE = 0.7

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "JPY": "¥",
    "GBP": "£",
    "AUD": "A$",
    "CAD": "C$",
    "CNY": "¥",
    "TWD": "NT$",
    "HKD": "HK$",
}

LANGUAGE_INSTRUCTIONS = {
    "zh-TW": "請以繁體中文回答。",
    "en": "Please respond in English.",
}


def financial_status(balance: float) -> str:
    if balance < 0:
        return "currently in debt"
    if balance < 100:
        return "on the lower side"
    if balance > 5000:
        return "looking healthy"
    return "stable"


def activity_level(transaction_count: int) -> str:
    if transaction_count < 5:
        return "low"
    if transaction_count > 20:
        return "high"
    return "moderate"


def tip_prompt(balance: float, transaction_count: int, currency: str, language: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, "$")
    instruction = LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["en"])
    return (
        "You are Clarity, the friendly and insightful AI financial advisor integrated within the "
        "ClarityLedger personal finance app. Give the user one short, personalised financial tip.\n\n"
        "User's financial snapshot:\n"
        f"- Current Balance: {symbol}{balance:.2f} {currency}\n"
        f"- Recent Transaction Activity: {activity_level(transaction_count)} "
        f"({transaction_count} transactions recently)\n"
        f"- Derived Financial Status: {financial_status(balance)}\n\n"
        "Guidelines:\n"
        "- Make the tip actionable: suggest something the user can do this week.\n"
        "- Keep it relevant to the snapshot above.\n"
        "- Be specific rather than generic.\n"
        "- Be encouraging and never judgemental.\n"
        "- Keep it concise: 2-3 sentences.\n"
        "- Do not use markdown formatting.\n"
        f"- {instruction}\n\n"
        "Example scenarios:\n"
        "- Balance in debt: suggest listing debts and paying the highest interest one first.\n"
        "- Low balance with high activity: suggest reviewing small frequent purchases.\n"
        "- Healthy balance: suggest moving part of it into savings or an emergency fund."
    )


class FinancialTipAdapter:
    """Asks the chat completion API for a tip based on the user's balance and activity."""

    def __init__(self, config: AIConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    @property
    def model(self) -> str:
        return self.config.model.strip() or DEFAULT_OPENROUTER_MODEL

    def build_request(self, balance: float, transaction_count: int, currency: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "user", "content": tip_prompt(balance, transaction_count, currency, self.config.language)}
            ],
            "max_tokens": TIP_MAX_TOKENS,
            "temperature": TIP_TEMPERATURE,
        }

    def get_tip(self, balance: float, transaction_count: int, currency: str = "USD") -> FinancialTipResult:
        """Fetch a tip; failures come back as a result with ``error`` set."""
        if not self.config.api_key:
            return FinancialTipResult(error="API Key for OpenRouter is not set. Please configure it in settings.")

        try:
            response = self.session.post(
                self.config.base_url,
                headers={"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"},
                json=self.build_request(balance, transaction_count, currency),
            )
        except requests.exceptions.RequestException as e:
            logger.error("Error fetching financial tip: %s", e)
            return FinancialTipResult(
                error=f"Network error when trying to connect to OpenRouter for model {self.model}. "
                "Please check your connection."
            )

        if response.status_code == 401:
            return FinancialTipResult(error="Invalid OpenRouter API Key. Please check it in settings.")
        if response.status_code == 429:
            return FinancialTipResult(
                error=f"Rate limit exceeded for OpenRouter model: {self.model}. Please check your OpenRouter account."
            )
        if not response.ok:
            logger.error("OpenRouter tip error %s for model %s: %s", response.status_code, self.model, response.text)
            return FinancialTipResult(
                error=f"OpenRouter API request failed for model {self.model}: "
                f"{response.status_code} - {_error_message(response)}"
            )

        try:
            data = json.loads(response.text)
        except ValueError as e:
            logger.error("Financial tip response was not JSON: %s", e)
            return FinancialTipResult(error=f"Sorry, an unexpected error occurred while fetching a tip. {e}")

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            return FinancialTipResult(
                error="The AI model returned no choices. "
                "This might be due to content filters or an issue with the model."
            )

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        tip = content.strip() if isinstance(content, str) else ""
        if not tip:
            return FinancialTipResult(error="The AI model returned an empty message. Please try again.")
        return FinancialTipResult(tip=tip)


def _error_message(response: requests.Response) -> str:
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = None
    return message or response.reason or "Unknown error"
