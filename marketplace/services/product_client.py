# marketplace/services/product_client.py
from decimal import Decimal

import requests
from requests import RequestException

from marketplace.domain.errors import DownstreamFailure, NotFound
from marketplace.domain.values import ProductSnapshot
from marketplace.utils.retry import http_retry
from marketplace.utils.settings import PRODUCT_SERVICE_URL, PRODUCT_SERVICE_TIMEOUT
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """
    Katalog produktow - HTTP do product-service.
    Tylko odczyt: cena, stan magazynu, flagi in_stock / is_active.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout or PRODUCT_SERVICE_TIMEOUT

    @http_retry()
    def _get(self, url: str) -> requests.Response:
        resp = requests.get(url, timeout=self.timeout)
        #404 nie jest bledem transportu, nie ponawiamy
        if resp.status_code == 404:
            return resp
        resp.raise_for_status()
        return resp

    def fetch_product(self, product_id: int) -> ProductSnapshot:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        try:
            resp = self._get(url)
        except RequestException as e:
            logger.error(f"Product service unavailable for product {product_id}: {e}")
            raise DownstreamFailure("Product catalog is unavailable", product_id=product_id) from e

        if resp.status_code == 404:
            raise NotFound("Product not found", product_id=product_id)

        data = resp.json()
        return ProductSnapshot(
            product_id=int(data["id"]),
            name=data.get("name", ""),
            price=Decimal(str(data["price"])),
            stock_quantity=int(data.get("stock_quantity", 0)),
            in_stock=bool(data.get("in_stock", False)),
            is_active=bool(data.get("is_active", False)),
        )
