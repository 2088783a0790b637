from typing import Callable, Dict
from .base import EcommercePlatformConnector
from .shopify import ShopifyConnector

# Connector factories by platform name
_connectors: Dict[str, Callable[[], EcommercePlatformConnector]] = {
    'shopify': ShopifyConnector,
}

def get_connector(platform: str = 'shopify') -> EcommercePlatformConnector:
    """
    Get a connector instance for the specified platform.

    Args:
        platform: The platform name (e.g., 'shopify')

    Returns:
        An instance of EcommercePlatformConnector

    Raises:
        ValueError if the platform is not supported
    """
    factory = _connectors.get(platform.lower())
    if not factory:
        raise ValueError(f"Unsupported platform: {platform}")
    return factory()
