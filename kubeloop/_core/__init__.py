"""
The operator's engine: watch supervision, event sequencing, the finalizer
protocol, status writes, and the composition root that wires them together.
"""
