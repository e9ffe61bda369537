"""
HTTP routes for the star ledger.

A thin adapter: every endpoint maps onto one LedgerService operation.
Ownership errors become 4xx responses; absence becomes 404.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ..core import (
    ChallengeExpired,
    ChallengeReplayed,
    EmptyPayload,
    InvalidPayload,
    InvalidSignature,
    LedgerError,
    LedgerService,
    MalformedChallenge,
)
from ..schemas import OwnedStar


router = APIRouter(prefix="/api", tags=["Ledger"])


# Most specific first
_ERROR_STATUS: list[tuple[type, int]] = [
    (MalformedChallenge, 400),
    (EmptyPayload, 400),
    (InvalidPayload, 400),
    (InvalidSignature, 401),
    (ChallengeExpired, 403),
    (ChallengeReplayed, 409),
]


def _status_for(error: LedgerError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 400


def _ledger(request: Request) -> LedgerService:
    return request.app.state.ledger


# ============================================================
# Request / Response Models
# ============================================================

class ChallengeRequest(BaseModel):
    address: str = Field(..., min_length=1)


class ChallengeResponse(BaseModel):
    address: str
    challenge: str


class SubmitStarRequest(BaseModel):
    address: str
    message: str = Field(..., description="The challenge that was signed")
    signature: str
    star: dict[str, Any]


class RecordResponse(BaseModel):
    """External representation of a record (payload hex-encoded)."""
    position: int
    timestamp: int
    previous_digest: str | None = None
    digest: str
    payload: str


class HeightResponse(BaseModel):
    height: int


class ValidationResponse(BaseModel):
    valid: bool
    findings: list[dict[str, Any]]


# ============================================================
# Endpoints
# ============================================================

@router.get("/height", response_model=HeightResponse)
def get_height(request: Request):
    return HeightResponse(height=_ledger(request).height())


@router.get("/blocks/position/{position}", response_model=RecordResponse)
def get_block_by_position(position: int, request: Request):
    record = _ledger(request).get_by_position(position)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No record at position {position}")
    return record.to_external()


@router.get("/blocks/digest/{digest}", response_model=RecordResponse)
def get_block_by_digest(digest: str, request: Request):
    record = _ledger(request).get_by_digest(digest)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_external()


@router.post("/ownership/challenge", response_model=ChallengeResponse)
def request_ownership_challenge(body: ChallengeRequest, request: Request):
    try:
        challenge = _ledger(request).issue_ownership_challenge(body.address)
    except LedgerError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return ChallengeResponse(address=body.address, challenge=challenge)


@router.post("/stars", response_model=RecordResponse, status_code=201)
def submit_star(body: SubmitStarRequest, request: Request):
    try:
        record = _ledger(request).submit_record(
            address=body.address,
            challenge=body.message,
            signature=body.signature,
            star=body.star,
        )
    except LedgerError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return record.to_external()


@router.get("/stars/{address}", response_model=list[OwnedStar])
def get_stars_by_owner(address: str, request: Request):
    return _ledger(request).get_by_owner(address)


@router.get("/validate", response_model=ValidationResponse)
def validate_chain(request: Request):
    findings = _ledger(request).validate()
    return ValidationResponse(
        valid=not findings,
        findings=[f.model_dump(mode="json") for f in findings],
    )


@router.get("/chain")
def export_chain(request: Request):
    return _ledger(request).export_chain()
