"""Failures raised by the summary pipeline."""


class SummaryError(Exception):
    """Base class for summary pipeline failures."""

    code = "summary_error"


class InvalidSummaryError(SummaryError):
    """The model answered, but not with a usable summary."""

    code = "invalid_summary"


class SummarizerUnavailableError(SummaryError):
    """No provider is configured, or the provider call failed in transit."""

    code = "summarizer_unavailable"


class SummaryCancelledError(SummaryError):
    """The caller abandoned the request before it finished."""

    code = "cancelled"
