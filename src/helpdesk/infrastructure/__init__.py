"""
Infrastructure Layer
=====================

Low-level technical concerns shared by the bounded contexts:
- Database connection management
- Per-operation storage timeouts and transient error mapping
"""
