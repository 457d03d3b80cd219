"""
Storage abstractions for the Briefdesk runtime.

Includes:
- DocumentStore: in-memory + file-backed base for pydantic documents
- SessionStore: briefing sessions, enforcing one active session per client
- JobStore / WorkerStore: jobs and workers read and repaired by maintenance
- LogStore: append-only event log for lifecycle events
"""
