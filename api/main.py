"""
FastAPI API for Tenancy Verifier
"""
import logging
import os
import threading
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from tenancy import (
    ParseError,
    TenancyVerifier,
    UserClaim,
    ValidationError,
    VerificationUnavailable,
)
from tenancy.ingest import pdf_bytes_to_text

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Tenancy Verifier API",
    description="API for verifying tenancy details against an uploaded tenancy agreement",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

verifier = None
_verifier_lock = threading.Lock()


def get_verifier() -> TenancyVerifier:
    """Get or create verifier instance (one per process, even under concurrent first requests)"""
    global verifier
    if verifier is None:
        with _verifier_lock:
            if verifier is None:
                verifier = TenancyVerifier()
    return verifier


# Request Models
class ClaimModel(BaseModel):
    """Tenancy details asserted by the user"""
    fullName: str = Field(..., description="Tenant's full name")
    address: str = Field(..., description="Property address")
    rent: str = Field(..., description="Monthly rent amount, e.g. 1200.00")
    startDate: str = Field(..., description="Tenancy start date (YYYY-MM-DD)")
    endDate: str = Field(..., description="Tenancy end date (YYYY-MM-DD)")


class VerifyTextRequest(BaseModel):
    """Request model for verification against already-extracted text"""
    claim: ClaimModel
    documentText: str = Field(..., description="Text of the tenancy agreement")

    model_config = {
        "json_schema_extra": {
            "example": {
                "claim": {
                    "fullName": "Jane Doe",
                    "address": "1 High St",
                    "rent": "1200",
                    "startDate": "2024-01-01",
                    "endDate": "2024-12-31"
                },
                "documentText": "Tenant: Jane Doe\nProperty: 1 High St\nRent: 1200 per month\n"
                                "Term: 2024-01-01 to 2024-12-31\nDeposit: £1,500.00"
            }
        }
    }


def _error(status_code: int, error: str, message: str, error_type: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "message": message, "type": error_type}
    )


def _run_verification(val: TenancyVerifier, claim: UserClaim, text: str) -> Dict[str, Any]:
    try:
        return val.verify(claim, text).to_dict()
    except ValidationError as e:
        raise _error(400, "ValidationError", str(e), "invalid_claim")
    except VerificationUnavailable as e:
        logger.error("Verification unavailable: %s", e)
        raise _error(503, "VerificationUnavailable", str(e), "extraction_unavailable")


# API Endpoints
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Tenancy Verifier API",
        "version": "1.0.0",
        "endpoints": {
            "POST /verify": "Verify claimed tenancy details against an uploaded PDF (multipart form)",
            "POST /verify/text": "Verify claimed tenancy details against document text (JSON)",
            "GET /health": "Health check"
        }
    }


@app.get("/health")
def health_check(val: TenancyVerifier = Depends(get_verifier)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "verifier_initialized": True,
        "strategy": val.strategy
    }


@app.post("/verify", response_model=Dict[str, Any])
def verify_upload(
    fullName: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    rent: Optional[str] = Form(None),
    startDate: Optional[str] = Form(None),
    endDate: Optional[str] = Form(None),
    pdfFile: Optional[UploadFile] = File(None, description="Tenancy agreement PDF"),
    val: TenancyVerifier = Depends(get_verifier)
):
    """
    Verify tenancy details against an uploaded tenancy agreement PDF.

    This endpoint:
    1. Validates the claimed details
    2. Extracts the PDF text
    3. Runs structured extraction (falling back to direct text matching)
    4. Returns the verification report

    Example curl:
    ```bash
    curl -X POST "http://127.0.0.1:8000/verify" \\
      -F "fullName=Jane Doe" -F "address=1 High St" -F "rent=1200" \\
      -F "startDate=2024-01-01" -F "endDate=2024-12-31" \\
      -F "pdfFile=@agreement.pdf"
    ```
    """
    try:
        claim = UserClaim.from_form({
            "fullName": fullName,
            "address": address,
            "rent": rent,
            "startDate": startDate,
            "endDate": endDate,
        })
    except ValidationError as e:
        raise _error(400, "ValidationError", str(e), "invalid_claim")

    if pdfFile is None or not pdfFile.filename:
        raise _error(400, "ValidationError", "No valid PDF file uploaded", "missing_file")

    try:
        text = pdf_bytes_to_text(pdfFile.file.read())
    except ParseError as e:
        logger.warning("PDF text extraction failed for '%s': %s", pdfFile.filename, e)
        text = ""

    return _run_verification(val, claim, text)


@app.post("/verify/text", response_model=Dict[str, Any])
def verify_text(request: VerifyTextRequest, val: TenancyVerifier = Depends(get_verifier)):
    """
    Verify tenancy details against document text that was extracted elsewhere.
    """
    try:
        claim = UserClaim.from_form(request.claim.model_dump())
    except ValidationError as e:
        raise _error(400, "ValidationError", str(e), "invalid_claim")

    return _run_verification(val, claim, request.documentText)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
