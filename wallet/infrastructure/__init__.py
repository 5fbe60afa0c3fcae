"""
Infrastructure Layer - Storage, Files and Workers

This layer contains:
- Entity store (ID-indexed, insertion-ordered, in memory)
- File codec (single-file accounts format, three-file dump directory)
- Parallel aggregator (fixed worker pool per call, merge under lock)

The ledger Service in wallet.service wires these together.
"""
