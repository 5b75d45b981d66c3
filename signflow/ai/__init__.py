"""AI-backed document metadata analysis."""
