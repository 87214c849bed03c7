from services.marketplace_service.models.credentials import MarketplaceCredential
from services.marketplace_service.models.shipments import Shipment

__all__ = ["MarketplaceCredential", "Shipment"]
