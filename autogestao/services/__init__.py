"""Domain services.

Use explicit imports:
    from autogestao.services.vehicles import VehicleService
"""
