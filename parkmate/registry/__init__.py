from parkmate.registry.vehicles import VehicleService
from parkmate.registry.villas import VillaService

__all__ = ["VehicleService", "VillaService"]
