"""
Shared Kernel

Code used by every app: the structured domain error taxonomy and the DRF
exception handler that renders it.
"""
