from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .config import ReceiptAnalysisConfig

logger = logging.getLogger(__name__)


class ReceiptAnalysisError(RuntimeError):
    def __init__(self, status: int, message: str, body: str | None = None):
        super().__init__(f"Receipt analysis HTTP {status}: {message}")
        self.status = status
        self.body = body


def analyze_receipt(
    config: ReceiptAnalysisConfig,
    *,
    file_url: str,
    file_name: str,
    mime_type: str,
    student_plans: list[dict[str, Any]],
    mixed: bool = False,
) -> dict[str, Any]:
    """
    Ask the receipt-analysis service to extract a receipt.

    Uses the callable-function wire format: the request body is wrapped in
    `{"data": ...}` and the reply in `{"result": ...}`. Returns the unwrapped
    `{success, analysis, error}` payload. Not retried: a slow or failed
    analysis falls back to manual entry.
    """
    function_name = config.mixed_function if mixed else config.single_function
    url = f"{config.base_url}/{function_name}"
    payload = {
        "data": {
            "fileUrl": file_url,
            "fileName": file_name,
            "mimeType": mime_type,
            "studentPlans": student_plans,
        }
    }

    req = Request(url, data=json.dumps(payload).encode("utf-8"), method="POST")
    req.add_header("Accept", "application/json")
    req.add_header("Content-Type", "application/json")
    if config.id_token:
        req.add_header("Authorization", f"Bearer {config.id_token}")

    try:
        with urlopen(req, timeout=config.timeout_seconds) as resp:
            raw = resp.read().decode("utf-8")
    except HTTPError as exc:
        body = exc.read().decode("utf-8") if exc.fp else None
        raise ReceiptAnalysisError(exc.code, exc.reason, body) from exc
    except URLError as exc:
        raise ReceiptAnalysisError(0, str(exc)) from exc

    decoded = json.loads(raw) if raw else {}
    if "error" in decoded and "result" not in decoded:
        raise ReceiptAnalysisError(200, str(decoded["error"]), raw)
    logger.info("Receipt analysis (%s) completed for %s", function_name, file_name)
    return decoded.get("result") or {}
