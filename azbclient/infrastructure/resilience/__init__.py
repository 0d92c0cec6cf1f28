"""API Resilience Implementations.

Contains the request orchestrator with its retry policy and linear backoff,
the cached health probe and wake sequence for a sleeping backend, and the
deadline wrapper around every network call.
Bounded Context: API Resilience
"""
