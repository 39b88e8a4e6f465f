"""Long-running observer worker and its core."""
