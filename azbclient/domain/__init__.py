"""Domain Layer: value objects, events and ports shared by every other layer."""
