"""
Retry orchestrator.

Wraps unreliable calls (network requests, flaky services) so callers receive
either an eventual success or the last representative failure:
- Per-status-code and per-hundred-range attempt budgets
- Message filters (substring or regex) that stop retries early
- Compounding backoff between attempts
- Sync (blocking) and async (cooperative) drivers with optional cancellation

Architecture: pydantic policy models + classifier + backoff + driver state machine
"""

__version__ = "0.1.0"
