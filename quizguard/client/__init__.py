"""HTTP client for the grading backend."""
