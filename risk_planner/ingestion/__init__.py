"""
risk_planner.ingestion — everything that touches the filesystem on the way in.

Modules:
  loaders   — JSON catalogs/snapshots → validated models; InputValidationError.
  suite_scan — test-file counts per pyramid layer and per module.
"""
