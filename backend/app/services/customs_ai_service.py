"""
Claude API service for customs data.

Supports:
- Enrichment: HS code, weights, Incoterm, material and intended use for one order
- Validation: anomaly check of a merged order + enrichment record
- Extraction: best-effort shipment fields from free-form order text
"""

import json
import logging

import anthropic

from app.config import Settings
from app.schemas.ai import (
    EnrichmentRequest,
    EnrichmentResponse,
    ExtractedOrder,
    ValidationResult,
)
from app.schemas.shipment import DutiesPayer

logger = logging.getLogger("clearpath.ai")

ENRICHMENT_SYSTEM_PROMPT = """You are a logistics AI that prepares data for customs commercial invoices.

Given a short product description and order details, you classify the goods and fill in the customs fields. Weights are in kilograms for the TOTAL shipment. If a value cannot be determined, use null.

Respond with valid JSON only, no additional text."""

ENRICHMENT_SCHEMA = """{
  "hs_code": "6-digit HS code string",
  "material": "string",
  "intended_use": "string",
  "gross_weight": 0,
  "net_weight": 0,
  "incoterm": "DAP | DDP | FOB | EXW | CIF",
  "unit_price": 0,
  "export_reason": "Sale | Sample | Gift | Repair | Return",
  "risk_level": "Low | Medium | High",
  "reasoning": "string"
}"""

VALIDATION_SYSTEM_PROMPT = """You are a customs compliance reviewer. Check commercial invoice data for errors or anomalies: implausible weights for the product and quantity, HS codes that do not match the description, values that look wrong, missing parties.

Respond with valid JSON only: {"valid": true|false, "warnings": ["short human-readable warning", ...]}"""

EXTRACTION_SYSTEM_PROMPT = """You extract shipment details from raw order text (emails, marketplace exports, chat messages).

If a field is not present in the text, use null. For monetary amounts, use numeric values without currency symbols.

Respond with valid JSON only, no additional text."""

EXTRACTION_SCHEMA = """{
  "consignee_name": "string or null",
  "consignee_address": "string or null",
  "product_description": "string or null",
  "quantity": 0,
  "total_value": 0,
  "currency": "ISO code or null",
  "destination_country": "string or null"
}"""


def _parse_json_response(response_text: str) -> dict:
    """Parse JSON from Claude response, handling markdown code blocks."""
    text = response_text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    try:
        result = json.loads(text)
    except (json.JSONDecodeError, IndexError) as e:
        logger.error("Failed to parse Claude response as JSON: %s", e)
        raise ValueError(f"Claude response was not valid JSON: {e}") from e

    if not isinstance(result, dict):
        raise ValueError("Claude response was not a JSON object")
    return result


def _enrichment_prompt(request: EnrichmentRequest) -> str:
    incoterm_hint = "DDP" if request.duties_payer is DutiesPayer.SELLER else "DAP"
    return (
        "Enrich this shipment for a customs invoice.\n\n"
        f"Product: {request.description}\n"
        f"Qty: {request.quantity:g}\n"
        f"Total Value: {request.total_value:.2f}\n"
        f"Origin: {request.origin_country}\n"
        f"Destination: {request.destination_country or 'unknown'}\n"
        f"Who pays duties: {request.duties_payer.value}\n\n"
        "Tasks:\n"
        "1. Determine the HS code (6-digit).\n"
        "2. Infer material and intended use.\n"
        "3. Estimate gross and net weight in kg for the total shipment.\n"
        f"4. Set the Incoterm ({incoterm_hint} given who pays duties).\n"
        "5. Calculate the unit price.\n"
        "6. Set the reason for export (Sale unless the context implies otherwise).\n"
        "7. Rate the customs risk.\n\n"
        f"Return this JSON structure:\n\n{ENRICHMENT_SCHEMA}"
    )


class CustomsAIService:
    def __init__(self, settings: Settings):
        self.client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.model = settings.claude_model
        self.max_tokens = settings.claude_max_tokens

    async def _complete(self, system: str, prompt: str) -> dict:
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=0,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        return _parse_json_response(message.content[0].text)

    async def enrich(self, request: EnrichmentRequest) -> EnrichmentResponse:
        """Fill in customs fields for one order.

        Raises:
            anthropic.APIError: On transport or model errors.
            ValueError: If the response is not valid JSON.
            pydantic.ValidationError: If the JSON does not match the contract.
        """
        result = await self._complete(ENRICHMENT_SYSTEM_PROMPT, _enrichment_prompt(request))
        return EnrichmentResponse.model_validate(result)

    async def validate(self, shipment: dict) -> ValidationResult:
        """Ask the model to flag anomalies in a merged order + enrichment record."""
        prompt = (
            "Validate this customs invoice data for errors or anomalies.\n\n"
            f"Data: {json.dumps(shipment, default=str)}"
        )
        result = await self._complete(VALIDATION_SYSTEM_PROMPT, prompt)
        return ValidationResult.model_validate(result)

    async def extract(self, raw_text: str) -> ExtractedOrder | None:
        """Extract shipment details from raw order text.

        Best effort: returns None instead of raising when the call or parsing fails.
        """
        if not raw_text.strip():
            return None

        prompt = (
            f"Extract shipment details from this raw order text into the following JSON structure:\n\n"
            f"{EXTRACTION_SCHEMA}\n\nText:\n{raw_text}"
        )
        try:
            result = await self._complete(EXTRACTION_SYSTEM_PROMPT, prompt)
            return ExtractedOrder.model_validate(result)
        except (anthropic.APIError, ValueError) as e:
            logger.warning("Order extraction failed: %s", e)
            return None
