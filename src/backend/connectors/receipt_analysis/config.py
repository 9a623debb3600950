from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class ReceiptAnalysisConfig:
    # Base URL of the callable functions host, e.g. https://us-central1-<project>.cloudfunctions.net
    base_url: str
    id_token: str
    single_function: str = "analyzeReceipt"
    mixed_function: str = "analyzeMixedReceipt"
    timeout_seconds: int = 120


def get_receipt_analysis_config() -> ReceiptAnalysisConfig:
    """
    Load receipt-analysis connector configuration from environment variables.

    Reads:
      RECEIPT_ANALYSIS_BASE_URL (required), RECEIPT_ANALYSIS_ID_TOKEN,
      RECEIPT_ANALYSIS_TIMEOUT_SECONDS
    """
    base_url = os.getenv("RECEIPT_ANALYSIS_BASE_URL", "").strip()
    if not base_url:
        raise ValueError("Missing required environment variable: RECEIPT_ANALYSIS_BASE_URL")
    return ReceiptAnalysisConfig(
        base_url=base_url.rstrip("/"),
        id_token=os.getenv("RECEIPT_ANALYSIS_ID_TOKEN", "").strip(),
        timeout_seconds=int(os.getenv("RECEIPT_ANALYSIS_TIMEOUT_SECONDS", "120")),
    )
