"""Validation of model output against the receipt extraction shape."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from fintrack.errors import ExternalServiceError, SchemaValidationError
from fintrack.models import ExtractedReceiptData, TransactionCreate

logger = logging.getLogger(__name__)


def parse_model_json(content: str) -> Any:
    """
    Parse the raw model response as JSON.

    Markdown code fences are tolerated; anything else that is not JSON fails.

    Raises:
        ExternalServiceError: If the response is not valid JSON
    """
    content = content.strip()

    # Extract JSON from markdown code blocks if present
    if content.startswith("```"):
        parts = content.split("```")
        if len(parts) >= 3:
            content = parts[1]
            if content.lstrip().startswith("json"):
                content = content.lstrip()[4:]
            content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON from model: {e}; preview: {content[:200]!r}")
        raise ExternalServiceError(f"Model returned invalid JSON: {e}") from e


def validate_receipt_data(raw: Any) -> ExtractedReceiptData:
    """
    Validate a parsed JSON value as extracted receipt data.

    Raises:
        SchemaValidationError: Naming every offending field
    """
    if not isinstance(raw, dict):
        raise SchemaValidationError(f"Expected a JSON object, got {type(raw).__name__}", fields=["__root__"])

    try:
        return ExtractedReceiptData.model_validate(raw)
    except ValidationError as e:
        fields = []
        problems = []
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            if field not in fields:
                fields.append(field)
            problems.append(f"{field}: {error['msg']}")
        logger.error(f"Receipt data failed validation: {problems}")
        raise SchemaValidationError("Invalid receipt data - " + "; ".join(problems), fields=fields) from e


def to_transaction_create(data: ExtractedReceiptData) -> TransactionCreate:
    """
    Project validated receipt data onto a new transaction.

    ``merchant`` and ``confidence`` are display-only and are not stored.
    """
    return TransactionCreate(
        type=data.type,
        category=data.category,
        amount=data.amount,
        description=data.description,
        date=data.parsed_date,
    )
