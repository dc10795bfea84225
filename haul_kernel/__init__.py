"""
Haul Kernel

Domain records and shared infrastructure for haul-event validation:
- Immutable snapshots of haul events, routes, trucks, materials and requisitions
- Injectable clocks (engines never read the wall clock)
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
