"""
Price estimation collaborator.

Calls an OpenAI-compatible chat completions endpoint directly over httpx and
turns the answer into a Decimal. Callers must already hold update
authorization on the item whose price is being estimated.
"""

import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from app.config import settings
from app.core.errors import EstimationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that estimates prices for items. "
    "Given a description of an item, provide your best estimate of its current market price in USD. "
    'Respond with ONLY a JSON object in the format: {"price": number}. '
    'For example: {"price": 29.99}. Do not include any explanations or additional text.'
)

_PRICE_RE = re.compile(r'"price"\s*:\s*(\d+(?:\.\d+)?)')


def parse_price(content: str) -> Decimal:
    """Extract the price from the model's reply, tolerating text around the JSON."""
    content = (content or "").strip()
    value = None
    try:
        data = json.loads(content)
        if isinstance(data, dict):
            value = data.get("price")
    except json.JSONDecodeError:
        match = _PRICE_RE.search(content)
        if match:
            value = match.group(1)
    if value is None:
        raise EstimationError("Failed to parse price from estimator response")
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation:
        raise EstimationError(f"Estimator returned a non-numeric price: {value!r}")
    if price < 0:
        raise EstimationError("Estimator returned a negative price")
    return price


class PriceEstimator:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.timeout = timeout or settings.price_estimate_timeout
        self.transport = transport

    def estimate(self, prompt: str) -> Decimal:
        if not self.api_key:
            raise EstimationError("No price estimation API key configured")
        if not prompt or not prompt.strip():
            raise EstimationError("Nothing to estimate")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 100,
            "temperature": 0.5,
        }
        try:
            with httpx.Client(transport=self.transport, timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.base_url}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Price estimation request failed: {e}")
            raise EstimationError("Price estimation service unavailable")

        choices = data.get("choices") or []
        if not choices:
            raise EstimationError("Estimator returned no choices")
        content = (choices[0].get("message") or {}).get("content", "")
        return parse_price(content)


def get_price_estimator() -> PriceEstimator:
    return PriceEstimator()
