"""Receipt extraction pipeline: uploaded file to saved transaction."""

import logging
from dataclasses import dataclass
from enum import Enum

from fintrack.db.sqlite import UserTransactions
from fintrack.errors import FintrackError, InputValidationError, ReceiptProcessingError
from fintrack.models import ExtractedReceiptData, Transaction
from fintrack.receipts.documents import classify_document, encode_image, extract_pdf_text
from fintrack.receipts.llm_client import ExtractionClient
from fintrack.receipts.prompts import IMAGE_PROMPT, TEXT_PROMPT
from fintrack.receipts.validation import parse_model_json, to_transaction_create, validate_receipt_data

logger = logging.getLogger(__name__)


class ReceiptStage(str, Enum):
    """Stages one document moves through, in order."""

    RECEIVED = "received"
    VALIDATING_INPUT = "validating_input"
    EXTRACTING_TEXT = "extracting_text"
    CALLING_MODEL = "calling_model"
    PARSING_RESPONSE = "parsing_response"
    VALIDATING_SCHEMA = "validating_schema"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR = "error"


@dataclass
class ReceiptUpload:
    """An uploaded receipt file."""

    filename: str | None
    content_type: str | None
    contents: bytes


@dataclass
class ReceiptResult:
    """Extracted data plus the transaction it was saved as."""

    data: ExtractedReceiptData
    transaction: Transaction


class ReceiptPipeline:
    """
    Drives one uploaded document through extraction and persistence.

    The run is sequential and single-attempt: one model call and, on
    success, one insert. Any failure ends the run in the ``error`` stage and
    nothing is saved.
    """

    def __init__(self, client: ExtractionClient, store: UserTransactions):
        self.client = client
        self.store = store
        self.stage = ReceiptStage.RECEIVED

    def _advance(self, stage: ReceiptStage) -> None:
        logger.info(f"Receipt for user {self.store.user_id}: {self.stage.value} -> {stage.value}")
        self.stage = stage

    async def run(self, upload: ReceiptUpload | None) -> ReceiptResult:
        """
        Process an uploaded receipt and save the resulting transaction.

        Raises:
            FintrackError: A typed error for every expected failure; anything
                unexpected is wrapped in ReceiptProcessingError
        """
        try:
            return await self._run(upload)
        except FintrackError as e:
            logger.error(f"Receipt processing failed at {self.stage.value}: {e}")
            self.stage = ReceiptStage.ERROR
            raise
        except Exception as e:
            logger.exception(f"Unexpected receipt processing error at {self.stage.value}")
            self.stage = ReceiptStage.ERROR
            raise ReceiptProcessingError(str(e)) from e

    async def _run(self, upload: ReceiptUpload | None) -> ReceiptResult:
        if upload is None or not upload.contents:
            raise InputValidationError("No file provided")
        kind = classify_document(upload.content_type)
        self.client.ensure_configured()

        self._advance(ReceiptStage.VALIDATING_INPUT)
        logger.info(f"File received: name={upload.filename} type={upload.content_type} size={len(upload.contents)}")

        if kind == "pdf":
            self._advance(ReceiptStage.EXTRACTING_TEXT)
            text = extract_pdf_text(upload.contents)
            self._advance(ReceiptStage.CALLING_MODEL)
            raw = await self.client.extract_from_text(TEXT_PROMPT, text)
        else:
            self._advance(ReceiptStage.CALLING_MODEL)
            raw = await self.client.extract_from_image(
                IMAGE_PROMPT, encode_image(upload.contents), upload.content_type or "image/jpeg"
            )

        self._advance(ReceiptStage.PARSING_RESPONSE)
        parsed = parse_model_json(raw)

        self._advance(ReceiptStage.VALIDATING_SCHEMA)
        data = validate_receipt_data(parsed)

        self._advance(ReceiptStage.PERSISTING)
        transaction = self.store.create(to_transaction_create(data))

        self._advance(ReceiptStage.DONE)
        logger.info(f"Transaction saved with ID {transaction.id} (confidence {data.confidence:.2f})")
        return ReceiptResult(data=data, transaction=transaction)
