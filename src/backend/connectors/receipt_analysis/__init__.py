from .client import ReceiptAnalysisError, analyze_receipt
from .config import ReceiptAnalysisConfig, get_receipt_analysis_config

__all__ = ["ReceiptAnalysisConfig", "ReceiptAnalysisError", "analyze_receipt", "get_receipt_analysis_config"]
