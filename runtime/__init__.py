"""
Runtime package for the Briefdesk server.

This package contains:
- API layer (FastAPI server + routes)
- Agents (briefing session state machine)
- Stores (sessions, jobs, workers, event logs)
- Tasks (consistency maintenance + scheduler)
- Models (Pydantic models for sessions, jobs and HTTP schemas)
"""
