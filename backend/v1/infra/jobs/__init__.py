"""
Durable background jobs.

This package provides a single-table job queue with:
- Lease-based claiming with FOR UPDATE SKIP LOCKED
- Exponential backoff and terminal failure once attempts run out
- Registry-based handlers dispatched by job type tag
- A polling worker that survives any single failed tick
"""
