from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from receipts.receipt_model import ExtractTextResponse
from receipts.relay_service import ReceiptRelay, get_relay


router = APIRouter(tags=["relay"])


@router.get("/")
async def root() -> Dict[str, str]:
    return {"message": "PDF Text Extraction Server is running!"}


@router.get("/test")
async def connectivity_test() -> Dict[str, str]:
    return {"message": "Server is reachable!", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/extract-text", response_model=ExtractTextResponse, response_model_by_alias=True)
async def extract_receipt_text(
    file: Optional[UploadFile] = File(None),
    relay: ReceiptRelay = Depends(get_relay),
) -> ExtractTextResponse:
    content = await relay.read_upload(file)
    return await relay.process(file.filename, content)
