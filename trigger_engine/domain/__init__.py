"""Domain models, category rules and errors for trigger analysis."""
