"""
Tests for the POAP feed pipeline.

Covers:
- Transfer classification and dedup
- Metadata enrichment with soft/hard lookups
- Notification formatting and channel rendering
- Fan-out delivery and per-event isolation
- Chain log decoding and reconnection
- Environment configuration
"""
