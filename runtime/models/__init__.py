"""
Pydantic models used by the Briefdesk runtime.

Split into:
- session_models: BriefingSession + BriefingMessage + SessionStatus
- job_models: Job + Worker records touched by maintenance
- api_models: HTTP request/response schemas
"""
