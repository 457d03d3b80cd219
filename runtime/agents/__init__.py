"""
Agents used by the Briefdesk runtime.

BriefingAgent receives a client message, updates the session history,
refreshes the extracted brief and decides whether to ask a follow-up
question or present the completed summary.
"""
