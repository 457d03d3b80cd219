"""
Core briefing logic, independent of the HTTP runtime.

- brief:   schema/validation, extraction and reply generation
- context: retrieval of the client's past work
- api:     thin OpenAI client wrapper
"""
