"""
Infrastructure Layer
=====================

Low-level technical concerns shared by every bounded context:
- Structured JSON logging
- Operation latency logging
"""
