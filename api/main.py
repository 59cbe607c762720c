from __future__ import annotations

import json
import logging
import math
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.datastructures import UploadFile

from core.settings import DEFAULT_SETTINGS


NO_FILE_MESSAGE = "No file uploaded."
INVALID_JSON_MESSAGE = "Invalid JSON file."

settings = DEFAULT_SETTINGS.server

app = FastAPI(title="Sales Dashboard Upload API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with NaN/Infinity encoded as null."""

    def _safe_float(value: float) -> Optional[float]:
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    return JSONResponse(content=jsonable_encoder(data, custom_encoder={float: _safe_float}))


def parse_json_bytes(raw: bytes) -> object:
    """Decode an uploaded file as JSON text. Raises ValueError when it is not JSON."""
    return json.loads(raw)


@app.post("/upload")
async def upload(request: Request):
    form = await request.form()
    try:
        file = form.get("file")
        if not isinstance(file, UploadFile) or not file.filename:
            return PlainTextResponse(NO_FILE_MESSAGE, status_code=400)
        raw = await file.read()
    finally:
        await form.close()
    try:
        payload = parse_json_bytes(raw)
    except ValueError:
        logger.warning("upload %r is not valid JSON (%d bytes)", file.filename, len(raw))
        return PlainTextResponse(INVALID_JSON_MESSAGE, status_code=400)
    logger.info("upload %r parsed (%d bytes)", file.filename, len(raw))
    return _json(payload)


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Server is running on http://localhost:%d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
