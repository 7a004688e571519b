"""
risk-planner — CUJ/SLO/coverage risk register and test-portfolio planner.

The engine (``risk``, ``portfolio``) is pure, in-memory computation over
already-validated inputs.  ``ingestion`` and ``reporting`` are the I/O edges;
``cli`` wires file paths to the engine.
"""

__version__ = "0.1.0"
