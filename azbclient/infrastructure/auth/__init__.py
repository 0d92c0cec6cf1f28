"""Session Token Handling.

Token expiry validation, the token store mirrored to persistent storage,
and the in-process signal fired when a session becomes invalid.
Bounded Context: Session Authentication
"""
