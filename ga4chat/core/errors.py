"""
Exception hierarchy for the chat pipeline.

Only the execution stage raises these past a component boundary; the
interpreter and formatter collapse their failures into text.
"""
from __future__ import annotations


class CopilotError(Exception):
    """Base class for every error raised by ga4chat."""


class ConfigError(CopilotError):
    """A required credential or identifier is missing or malformed."""


class UpstreamError(CopilotError):
    """The GA4 Data API rejected or failed the request."""


class UpstreamPermissionError(UpstreamError):
    pass


class UpstreamNotFoundError(UpstreamError):
    pass


class UpstreamOtherError(UpstreamError):
    pass
