"""
Exception hierarchy for htmlpack
"""

from pathlib import Path
from typing import Optional


class HtmlpackError(Exception):
    """Base class of all htmlpack failures"""
    pass


class EnrichmentError(HtmlpackError):
    """Raised when a markup enrichment plugin fails"""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        super().__init__(f"[enrich:{stage}] {cause}")


class AssetError(HtmlpackError):
    """Raised when a referenced asset cannot be inlined"""

    def __init__(self, path: Path, reason: str = "asset not found"):
        self.path = path
        super().__init__(f"{reason}: {path}")


class TransformError(HtmlpackError):
    """
    Raised to the caller of transform() after the failure was reported

    The reporting already happened on the host error channel; callers
    should not report it again.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage
        super().__init__(message)
