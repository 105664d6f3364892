"""
Intent extraction.

One completion call per message with a fixed extraction prompt. The reply
must be a JSON object matching one ``TradeIntent`` variant; anything else
(prose, refusals, malformed or incomplete JSON) becomes ``NoTradeIntent``.
Completion service failures are not parse failures and propagate.
"""

import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ...providers.llm import LLMMessage, LLMProvider
from .models import MarketSnapshot, NoTradeIntent, TradeIntent, trade_intent_adapter


logger = logging.getLogger(__name__)

INTENT_SYSTEM_PROMPT = """Extract the trade intent from the user's message. Return JSON only, in exactly one of these formats:
For wrap: {"type":"wrap","amount":"X"} where X is the amount of MNT to wrap
For unwrap: {"type":"unwrap","amount":"X"} where X is the amount of WMNT to unwrap
For buy: {"type":"buy","tokenIn":"TOKEN1","tokenOut":"TOKEN2","amount":"X","slippage":"0.5"}
For sell: {"type":"sell","tokenIn":"TOKEN1","tokenOut":"TOKEN2","amount":"X","slippage":"0.5"}
For no trade: {"type":"none"}
Amounts are in human units of tokenIn. slippage is a percentage and may be omitted."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def _extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    stripped = text.strip()
    fenced = _FENCE_RE.match(stripped)
    if fenced:
        stripped = fenced.group(1)

    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        # Models sometimes wrap the object in a sentence
        start, end = stripped.find("{"), stripped.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(stripped[start:end + 1])
        except json.JSONDecodeError:
            return None

    return parsed if isinstance(parsed, dict) else None


def _slippage_bps(payload: Dict[str, Any]) -> Optional[int]:
    for key in ("slippageToleranceBps", "slippageBps"):
        if payload.get(key) is not None:
            return int(Decimal(str(payload[key])))
    if payload.get("slippage") is not None:
        percent = Decimal(str(payload["slippage"]).strip().rstrip("%"))
        return int((percent * 100).to_integral_value())
    return None


def normalize_intent_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Map the model's JSON onto ``TradeIntent`` field names.

    Raises:
        ValueError: the slippage value is not numeric
    """
    kind = str(payload.get("kind") or payload.get("type") or "none").strip().lower()
    normalized: Dict[str, Any] = {"kind": kind}
    if kind == "none":
        return normalized

    if payload.get("amount") is not None:
        normalized["amount"] = str(payload["amount"])
    if kind in ("buy", "sell"):
        normalized["tokenIn"] = payload.get("tokenIn", payload.get("token_in"))
        normalized["tokenOut"] = payload.get("tokenOut", payload.get("token_out"))
        try:
            bps = _slippage_bps(payload)
        except (InvalidOperation, ValueError, TypeError, OverflowError) as exc:
            raise ValueError(f"invalid slippage: {exc}") from exc
        if bps is not None:
            normalized["slippageToleranceBps"] = bps
    return normalized


def parse_intent_text(text: Optional[str]) -> TradeIntent:
    """Validate a completion against the intent schema; never raises."""
    if not text or not text.strip():
        return NoTradeIntent()

    payload = _extract_json_object(text)
    if payload is None:
        logger.debug("Completion is not a JSON object: %r", text[:200])
        return NoTradeIntent()

    try:
        return trade_intent_adapter.validate_python(normalize_intent_payload(payload))
    except (PydanticValidationError, ValueError) as exc:
        logger.info("Discarding invalid intent %s: %s", payload, exc)
        return NoTradeIntent()


class IntentParser:
    """Turns a user utterance into a ``TradeIntent``."""

    def __init__(self, llm: LLMProvider, *, temperature: float = 0.1, max_tokens: int = 150):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    def build_messages(self, raw_message: str, market_context: Optional[MarketSnapshot] = None) -> List[LLMMessage]:
        messages = []
        if market_context is not None:
            messages.append(
                LLMMessage.system(f"Current market context:\n{market_context.to_prompt()}")
            )
        messages.append(LLMMessage.system(INTENT_SYSTEM_PROMPT))
        messages.append(LLMMessage.user(raw_message))
        return messages

    async def parse(self, raw_message: str, market_context: Optional[MarketSnapshot] = None) -> TradeIntent:
        """Extract the intent of ``raw_message``.

        Raises:
            LLMProviderError: the completion service could not be reached
        """
        if not raw_message or not raw_message.strip():
            return NoTradeIntent()

        response = await self.llm.generate_response(
            messages=self.build_messages(raw_message, market_context),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        intent = parse_intent_text(response.content)
        logger.debug("Parsed intent: %s", intent)
        return intent


__all__ = ["IntentParser", "INTENT_SYSTEM_PROMPT", "normalize_intent_payload", "parse_intent_text"]
