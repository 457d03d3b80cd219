"""Brief model, schema validation, extraction and reply generation."""
