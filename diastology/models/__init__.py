"""Node, algorithm, session and API models."""
