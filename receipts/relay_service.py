from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Optional

from fastapi import UploadFile, status

from receipts.analysis import ReceiptAnalyzer
from receipts.receipt_model import ExtractTextResponse, ReceiptAnalysis
from receipts.text_extraction import extract_text
from settings.config import settings

logger = logging.getLogger(__name__)

PDF_MIME_TYPES = {"application/pdf", "application/x-pdf"}

_extraction_pool: Optional[ThreadPoolExecutor] = None


def get_extraction_pool() -> ThreadPoolExecutor:
    global _extraction_pool
    if _extraction_pool is None:
        _extraction_pool = ThreadPoolExecutor(max_workers=settings.EXTRACTION_WORKERS, thread_name_prefix="pdf-extract")
    return _extraction_pool


def shutdown_extraction_pool() -> None:
    global _extraction_pool
    if _extraction_pool is not None:
        _extraction_pool.shutdown(wait=False, cancel_futures=True)
        _extraction_pool = None


class RelayValidationError(Exception):
    """Upload rejected before any extraction was attempted."""

    def __init__(self, status_code: int, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


def _megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):g}MB"


class ReceiptRelay:
    def __init__(
        self,
        analyzer: Optional[ReceiptAnalyzer] = None,
        extractor: Callable[[bytes], str] = extract_text,
        max_bytes: int | None = None,
        timeout: float | None = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.analyzer = analyzer or ReceiptAnalyzer()
        self.extractor = extractor
        self.max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
        self.timeout = settings.EXTRACTION_TIMEOUT_SECONDS if timeout is None else timeout
        self.executor = executor

    def check_pdf(self, filename: str | None, content_type: str | None) -> None:
        if content_type in PDF_MIME_TYPES:
            return
        _, ext = os.path.splitext(filename or "")
        if ext.lower() == ".pdf" and content_type in (None, "", "application/octet-stream"):
            return
        raise RelayValidationError(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            "Only PDF files are allowed!",
            f"Received content type {content_type or 'unknown'}",
        )

    async def read_upload(self, file: Optional[UploadFile]) -> bytes:
        """Validate the upload and read it, never holding more than the size limit plus one byte."""
        if file is None or not file.filename:
            raise RelayValidationError(status.HTTP_400_BAD_REQUEST, "No PDF file uploaded")
        self.check_pdf(file.filename, file.content_type)
        content = await file.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            raise RelayValidationError(
                status.HTTP_413_CONTENT_TOO_LARGE,
                f"File too large. Maximum size is {_megabytes(self.max_bytes)}.",
            )
        if not content:
            raise RelayValidationError(status.HTTP_400_BAD_REQUEST, "Uploaded file is empty")
        return content

    async def process(self, filename: str, content: bytes) -> ExtractTextResponse:
        logger.info(f"Processing PDF {filename} ({len(content)} bytes)")
        try:
            loop = asyncio.get_running_loop()
            job = loop.run_in_executor(self.executor or get_extraction_pool(), self.extractor, content)
            text = await asyncio.wait_for(job, timeout=self.timeout)
        except asyncio.TimeoutError:
            # A started extraction cannot be interrupted; it holds its pool worker until
            # the extractor returns and the result is dropped. Queued ones never start.
            logger.warning(f"Text extraction of {filename} timed out after {self.timeout}s")
            return ExtractTextResponse(
                filename=filename,
                extracted_text="",
                analysis=ReceiptAnalysis(),
                message="Text extraction timed out; no analysis available",
            )
        except Exception as e:
            logger.exception(f"Text extraction of {filename} failed: {e}")
            return ExtractTextResponse(
                filename=filename,
                extracted_text="",
                analysis=ReceiptAnalysis(),
                message="Text extraction failed; no analysis available",
            )

        if not text.strip():
            return ExtractTextResponse(
                filename=filename,
                extracted_text="",
                analysis=ReceiptAnalysis(),
                message="No text could be extracted from the document",
            )

        logger.info(f"Extracted {len(text)} chars from {filename}; starting analysis")
        analysis = await self.analyzer.analyze(text)
        logger.info(f"Analysis of {filename} completed: {analysis.model_dump()}")
        return ExtractTextResponse(
            filename=filename,
            extracted_text=text,
            analysis=analysis,
            message="Text extracted and analyzed successfully",
        )


def get_relay() -> ReceiptRelay:
    return ReceiptRelay()
