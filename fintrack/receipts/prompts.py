"""Prompt templates for receipt extraction."""

from fintrack.models import ReceiptCategory

CATEGORY_LIST = ", ".join(category.value for category in ReceiptCategory)

_INSTRUCTIONS = f"""
Instructions:
- Extract the TOTAL amount (not individual items), convert to number without currency symbols
- Extract the transaction date and convert to YYYY-MM-DD format
- Identify the merchant/business name clearly
- Categorize as one of: {CATEGORY_LIST}
- Determine if this is "income" or "expense" (receipts are expenses unless the document clearly shows money received)
- Provide a brief description of what was purchased/transaction purpose
- Rate your confidence in extraction accuracy from 0.0 to 1.0

Focus on accuracy over speed. If information is unclear, indicate lower confidence.

Return ONLY a valid JSON object with this exact structure:
{{
  "amount": number,
  "date": "YYYY-MM-DD",
  "merchant": "string",
  "category": "string",
  "type": "expense",
  "description": "string",
  "confidence": number
}}
"""

IMAGE_PROMPT = (
    "Analyze this receipt image and extract transaction information with high accuracy.\n" + _INSTRUCTIONS
)

TEXT_PROMPT = "Analyze this receipt text and extract transaction information with high accuracy.\n" + _INSTRUCTIONS


def with_receipt_text(prompt: str, receipt_text: str) -> str:
    """Append locally extracted receipt text to a prompt."""
    return f"{prompt}\nReceipt text:\n{receipt_text}\n"
