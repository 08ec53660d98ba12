"""Backend access, slot generation and calendar feeds."""
