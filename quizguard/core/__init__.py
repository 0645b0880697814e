"""Session engine: domain models, services and the session controller."""
