"""azbclient: resilient API client for a cold-start backend.

Keeps every API call alive across a sleeping backend, transient network and
5xx failures, and expired sessions, behind one request contract.
"""

__version__ = "1.0.0"
