"""
Monitor error taxonomy.

Every per-event failure derives from MonitorError and carries the
pipeline stage it came from, so the driver can log (signature, stage)
and move on. SubscriptionClosed is the only fatal error.
"""


class MonitorError(Exception):
    """Base class for recoverable per-event failures."""

    stage = "unknown"


# ── Extraction ──────────────────────────────────────────────────


class ExtractionError(MonitorError):
    stage = "extract"


class ProgramIdNotFound(ExtractionError):
    """Raw message whose account keys do not include the target program."""


class UnsupportedTransactionFormat(ExtractionError):
    """Transaction (or instruction) encoding the extractor cannot read."""


class NoMatchingInstruction(ExtractionError):
    """Parsed message with no instruction addressed to the target program."""


# ── Decode / resolve / calculate ────────────────────────────────


class MalformedPayload(MonitorError):
    stage = "decode"


class ResolveError(MonitorError):
    stage = "resolve"


class MetadataNotFound(ResolveError):
    pass


class MintDecodeError(ResolveError):
    pass


class SlippageError(MonitorError):
    """Slippage is undefined for a zero expected amount."""

    stage = "calculate"


# ── Transport ───────────────────────────────────────────────────


class RpcError(MonitorError):
    """HTTP failure, JSON-RPC error object, or missing result."""

    stage = "fetch"


class SubscriptionClosed(Exception):
    """The log subscription channel failed. Fatal for the driver loop."""
