"""Persistent Storage Implementations.

Provides concrete implementations of the KeyValueStorage interface used to
mirror session state across process restarts.
Bounded Context: Session Persistence
"""
