"""API routes for receipt recognition and extraction."""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from api.dependencies import get_ai_adapter, get_ocr_worker
from api.models import AIExtractionRequest, OCRTextRequest
from src.clarityledger.core.models import AIExtractionResult, OCRResult
from src.clarityledger.ocr.ai_extraction import AIExtractionAdapter
from src.clarityledger.ocr.heuristics import extract
from src.clarityledger.ocr.worker import OCRWorker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr", tags=["ocr"])

MAX_IMAGE_SIZE = 10 * 1024 * 1024


@router.post("/text", response_model=OCRResult)
async def extract_from_text(request: OCRTextRequest) -> OCRResult:
    """Guess amount, date and category from already recognized text."""
    return extract(request.text, request.today)


@router.post("/image", response_model=OCRResult)
def recognize_image(file: UploadFile = File(...), worker: OCRWorker = Depends(get_ocr_worker)) -> OCRResult:
    """Recognize a receipt image and guess its fields."""
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    content = file.file.read()
    if len(content) > MAX_IMAGE_SIZE:
        raise HTTPException(status_code=400, detail="File too large (max 10MB)")

    try:
        return worker.recognize(content)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"OCR processing failed: {str(e)}") from e


@router.post("/ai", response_model=AIExtractionResult)
def extract_with_ai(
    request: AIExtractionRequest, adapter: AIExtractionAdapter = Depends(get_ai_adapter)
) -> AIExtractionResult:
    """Ask the AI service for the receipt fields; failures are reported in ``error``."""
    image = None
    if request.image_base64:
        try:
            image = base64.b64decode(request.image_base64, validate=True)
        except binascii.Error as e:
            raise HTTPException(status_code=400, detail="image_base64 is not valid base64") from e

    return adapter.extract(request.text, image, request.image_mime_type, request.language)
