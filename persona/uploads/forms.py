from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileSize
from wtforms.validators import StopValidation

PDF_MIME_TYPE = "application/pdf"
MAX_PDF_SIZE = 10 * 1024 * 1024


class PDFMimeType:
    """Stop validation unless the upload declares exactly the PDF MIME type."""

    def __init__(self, message=None):
        self.message = message or "Only PDF files can be uploaded."

    def __call__(self, form, field):
        if field.data.mimetype != PDF_MIME_TYPE:
            raise StopValidation(self.message)


class PDFUploadForm(FlaskForm):
    class Meta:
        csrf = False

    pdf = FileField(
        "PDF document",
        validators=[
            FileRequired("No PDF file was provided."),
            PDFMimeType(),
            FileSize(max_size=MAX_PDF_SIZE, message="The file must be 10MB or smaller."),
        ],
    )

    def first_error(self) -> str:
        for errors in self.errors.values():
            if errors:
                return errors[0]
        return "The upload is invalid."
