"""FastAPI bridge between the session engine and the test-taker's page."""
