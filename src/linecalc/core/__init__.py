"""Core configuration and logging for linecalc."""
