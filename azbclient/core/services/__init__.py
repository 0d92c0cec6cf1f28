"""Application Services.

Session management and the endpoint wrappers it depends on, built on top
of the request orchestrator.
"""
