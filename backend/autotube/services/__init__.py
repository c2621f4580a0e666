"""External service clients used by the stage adapters."""
