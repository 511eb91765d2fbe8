"""
Unit tests for the retry orchestrator.

Test individual components in isolation:
- Policy models (validation, key normalization, configuration mapping)
- Failure accessors (code and message extraction)
- Classifier (eligibility, attempt limits, graceful degradation)
- Backoff (compounding fold, caps, stock functions)
- Retry engine (state machine, hooks, cancellation, sync and async)
"""
