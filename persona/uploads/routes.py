from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from pdf_handler import PDFExtractionError, extract_text_from_pdf

from ..models import PDFAnalysisResult
from ..services.llm import get_text_generator
from ..services.profile_extraction import ProfileExtractionError, extract_character_profile
from . import bp
from .forms import MAX_PDF_SIZE, PDF_MIME_TYPE, PDFUploadForm


def _error(message: str, status: int):
    return jsonify(PDFAnalysisResult(success=False, error=message).to_dict()), status


@bp.errorhandler(RequestEntityTooLarge)
def upload_too_large(_exc):
    return _error("The file must be 10MB or smaller.", 400)


@bp.route("/upload-pdf", methods=["POST"])
def upload_pdf():
    form = PDFUploadForm()
    if not form.validate():
        return _error(form.first_error(), 400)

    upload = form.pdf.data
    data = upload.read()
    current_app.logger.info("Processing PDF upload %s (%d bytes)", upload.filename, len(data))

    try:
        extracted_text = extract_text_from_pdf(data)
    except PDFExtractionError as exc:
        return _error(str(exc), 500)

    if not extracted_text.strip():
        return _error("No text could be extracted from the PDF.", 400)

    current_app.logger.info("Extracted %d characters of text", len(extracted_text))

    try:
        result = extract_character_profile(extracted_text, get_text_generator())
    except ProfileExtractionError as exc:
        return _error(str(exc), 500)
    except Exception:
        current_app.logger.exception("Unexpected error during character extraction")
        return _error("We couldn't analyse the PDF right now. Please try again.", 500)

    if result.prompt:
        current_app.logger.debug("Character extraction prompt: %s", result.prompt[:500])
    current_app.logger.info(
        "Extracted character '%s' (fallback=%s)", result.profile.name, result.used_fallback
    )

    analysis = PDFAnalysisResult(
        success=True,
        character=result.profile,
        raw_text=extracted_text,
        used_fallback=result.used_fallback,
    )
    return jsonify(analysis.to_dict())


@bp.route("/upload-pdf", methods=["GET"])
def upload_capabilities():
    return jsonify(
        {
            "maxFileSize": f"{MAX_PDF_SIZE // (1024 * 1024)}MB",
            "allowedTypes": [PDF_MIME_TYPE],
            "description": "Extracts a character profile from an uploaded PDF document.",
        }
    )
