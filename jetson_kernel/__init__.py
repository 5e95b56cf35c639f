"""Jetson kernel tooling (source acquisition, build, module install scripts).

Core design goals:
- Explicit context instead of ambient process state
- Every destructive operation logged before it runs
- Fail fast: one fatal error ends the run with exit code 1
- Identical error lines on the terminal and in the log file
"""

__all__ = []
