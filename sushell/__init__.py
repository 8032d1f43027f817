"""Core state, builtins, job control and arithmetic for a bash-compatible shell."""

__version__ = "0.1.0"