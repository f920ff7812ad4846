"""Strategy implementations for the document engine."""
