import logging
from typing import Optional
import httpx
from config import settings
from dashboard import DashboardSummary, summarize
from errors import AuthenticationError, InventoryError, error_from_response

logger = logging.getLogger(__name__)


class InventoryClient:
    """Thin API client holding the session cookie between calls."""

    def __init__(self, base_url: str = "http://localhost:8000", http: Optional[httpx.Client] = None,
                 prefix: str = settings.API_PREFIX, timeout: float = settings.CLIENT_TIMEOUT_SECONDS):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.prefix = prefix

    def _request(self, method: str, path: str, **kwargs):
        response = self.http.request(method, f"{self.prefix}{path}", **kwargs)
        if response.is_success:
            return response.json()
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.reason_phrase}
        raise error_from_response(response.status_code, body)

    # auth
    def register(self, full_name: str, email: str, password: str, role: str = "staff"):
        return self._request("POST", "/auth/register", json={
            "full_name": full_name, "email": email, "password": password, "role": role,
        })

    def login(self, email: str, password: str):
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def me(self):
        return self._request("GET", "/auth/me")

    def logout(self):
        return self._request("POST", "/auth/logout")

    def change_password(self, current_password: str, new_password: str):
        return self._request("PUT", "/auth/password", json={
            "current_password": current_password, "new_password": new_password,
        })

    # products
    def list_products(self):
        return self._request("GET", "/products")

    def create_product(self, **product):
        return self._request("POST", "/products", json=product)

    def stock_out(self, product: int, quantity: int):
        return self._request("PUT", f"/products/{product}/stockout", json={"quantity": quantity})

    def mark_obsolete(self, product: int):
        return self._request("PUT", f"/products/{product}/obsolete")

    def list_obsolete(self):
        return self._request("GET", "/products/obsolete")

    def restore(self, product: int):
        return self._request("PUT", f"/products/{product}/restore")

    # suppliers
    def list_suppliers(self):
        return self._request("GET", "/suppliers")

    def create_supplier(self, **supplier):
        return self._request("POST", "/suppliers", json=supplier)

    # stock out log
    def list_stock_out(self):
        return self._request("GET", "/stockout")

    def record_stock_out(self, product: int, quantity: int):
        """Decrement the product and then append the stock out record."""
        updated = self.stock_out(product, quantity)
        record = self._request("POST", "/stockout", json={"product": product, "quantity": quantity})
        return updated, record


class DashboardStore:
    """Client-side state for the dashboard view, refreshed on demand."""

    def __init__(self, client: InventoryClient, max_attempts: int = settings.DASHBOARD_MAX_ATTEMPTS):
        self.client = client
        self.max_attempts = max_attempts
        self.summary: Optional[DashboardSummary] = None
        self.error: Optional[str] = None
        self.attempts = 0
        self.session_expired = False

    @property
    def can_retry(self) -> bool:
        return not self.session_expired and self.attempts < self.max_attempts

    def refresh(self, now=None) -> Optional[DashboardSummary]:
        self.error = None
        try:
            products = self.client.list_products()
            suppliers = self.client.list_suppliers()
            records = self.client.list_stock_out()
        except httpx.TimeoutException:
            self.attempts += 1
            self.error = "Request timed out. Please check your network connection."
            logger.warning("Dashboard fetch timed out (attempt %s/%s)", self.attempts, self.max_attempts)
            return None
        except AuthenticationError:
            self.session_expired = True
            self.error = "Session expired. Please log in again."
            return None
        except InventoryError as exc:
            self.error = exc.message or "Failed to load dashboard data"
            return None

        self.attempts = 0
        self.summary = summarize(products, suppliers, records, now=now)
        return self.summary
