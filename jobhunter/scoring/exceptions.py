"""Exceptions raised by the analysis client."""


class AnalysisError(Exception):
    """Base exception for analysis service failures."""


class ExtractionError(AnalysisError):
    """Metadata extraction failed: transport error, no tool call, or schema mismatch."""


class SummaryError(AnalysisError):
    """Summary generation failed or returned no text."""
