"""
Services layer: stateful orchestration over the pure haul engines.

Services own the clock and the active rule policy; engines receive both as
explicit arguments.
"""

from haul_services.haul_capture_service import HaulCaptureService

__all__ = ["HaulCaptureService"]
