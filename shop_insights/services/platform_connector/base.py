from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

class EcommercePlatformConnector(ABC):
    """Abstract base class for e-commerce platform connectors."""

    @abstractmethod
    def get_platform_name(self) -> str:
        """Get the name of the platform this connector handles."""
        pass

    @abstractmethod
    def generate_auth_url(self, shop_domain: str, state: str) -> str:
        """Build the URL that sends the merchant to the platform's consent screen."""
        pass

    @abstractmethod
    async def exchange_code_for_token(self, params: Dict[str, Any]) -> Dict:
        """
        Exchange an authorization code for an access token.

        Args:
            params: The callback query parameters (shop, code, hmac, state, ...)

        Returns:
            Dict containing access_token and scope

        Raises:
            ValueError if the callback parameters do not validate
            RemoteFetchError if the platform rejects the exchange
        """
        pass

    @abstractmethod
    async def fetch_customers(self, shop_domain: str, access_token: str) -> List[Dict]:
        """Fetch the first page of customers from the platform."""
        pass

    @abstractmethod
    async def fetch_orders(self, shop_domain: str, access_token: str) -> List[Dict]:
        """Fetch the first page of orders, in any status, from the platform."""
        pass

    @abstractmethod
    def map_customer_to_db_model(self, platform_customer_data: Dict) -> Dict:
        """Transform platform customer data into our database model format (excluding IDs)."""
        pass

    @abstractmethod
    def map_order_to_db_model(self, platform_order_data: Dict) -> Dict:
        """
        Transform platform order data into our database model format (excluding IDs).

        The result carries ``platform_customer_id`` (or None) for the caller to resolve.
        """
        pass

    def extract_customer(self, platform_order_data: Dict) -> Optional[Dict]:
        """The customer payload embedded in an order, if any."""
        return platform_order_data.get("customer") or None
