"""Client context retrieval (past briefs and jobs)."""
