"""
Integration tests for the retry orchestrator.

Test components together:
- Retry engine driving real httpx clients over httpx.MockTransport
- Policies built from configuration mappings
- Sync and async drivers end-to-end
"""
