"""
REST client for the POS backend.

Wraps every endpoint the back office uses, attaches the bearer token from
the session, and turns non-2xx responses into ApiError with the backend's
own message.
"""

from typing import Any, Optional
import requests
import structlog

from config import settings, Session
from exceptions import ApiError, AuthenticationError
from models.catalog import Category, CategoryCreate, Manufacturer, ManufacturerCreate
from models.product import Product, ProductRecord, SizeStock
from models.sales import SaleCreate, SubmittedSale
from models.user import User, UserCreate, UserUpdate

logger = structlog.get_logger(__name__)

UNEXPECTED_RESPONSE = "Unexpected response from server"


class PosApiClient:
    """
    Data-access layer for the POS backend.

    Usage:
        client = PosApiClient(session=Session.load(path))
        products = client.fetch_all_products_admin()
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.session = session or Session()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.api_timeout_seconds
        self.http = http or requests.Session()

    # ===================
    # TRANSPORT
    # ===================

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
        auth: bool = True,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = self.session.auth_headers() if auth else {}

        logger.debug("api_request", method=method, path=path)

        try:
            response = self.http.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("api_request_failed", method=method, path=path, error=str(e))
            raise ApiError(f"Could not reach the POS backend: {e}") from e

        return self._handle_response(response, method, path)

    @staticmethod
    def _handle_response(response: requests.Response, method: str, path: str) -> Any:
        """Return the decoded body, or raise ApiError with the backend message."""
        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = None

            fallback = f"HTTP error! Status: {response.status_code} {response.reason}"
            if isinstance(body, dict):
                message = body.get("message") or fallback
                details = body.get("details")
            else:
                message = fallback
                details = None

            logger.error(
                "api_error",
                method=method,
                path=path,
                status=response.status_code,
                message=message
            )
            raise ApiError(
                message,
                status_code=response.status_code,
                details={"details": details} if details is not None else None,
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "api_response_not_json",
                method=method,
                path=path,
                status=response.status_code,
                error=str(e)
            )
            raise ApiError(UNEXPECTED_RESPONSE, status_code=502) from e

    @staticmethod
    def _unexpected(method: str, path: str, data: Any) -> ApiError:
        logger.error("api_unexpected_response", method=method, path=path, body_type=type(data).__name__)
        return ApiError(UNEXPECTED_RESPONSE, status_code=502)

    def _record(self, method: str, path: str, **kwargs) -> dict:
        """Request that must answer with a single JSON object."""
        data = self._request(method, path, **kwargs)
        if not isinstance(data, dict):
            raise self._unexpected(method, path, data)
        return data

    def _optional_record(self, method: str, path: str, **kwargs) -> Optional[dict]:
        """Like _record, but an empty body means no record."""
        data = self._request(method, path, **kwargs)
        if not data:
            return None
        if not isinstance(data, dict):
            raise self._unexpected(method, path, data)
        return data

    def _rows(self, method: str, path: str, **kwargs) -> list[dict]:
        """Request that must answer with a JSON array of objects."""
        data = self._request(method, path, **kwargs) or []
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise self._unexpected(method, path, data)
        return data

    # ===================
    # AUTH & USERS
    # ===================

    def authenticate(self, username: str, password: str) -> User:
        """
        Log in and store the token on the session.

        Raises:
            AuthenticationError: If the backend rejects the credentials
        """
        try:
            data = self._optional_record(
                "POST",
                "/auth/login",
                json={"username": username, "password": password},
                auth=False,
            )
        except ApiError as e:
            if e.status_code in (400, 401, 403):
                raise AuthenticationError(e.message) from e
            raise

        if not data or not data.get("token") or not data.get("user"):
            raise AuthenticationError("Login response did not include a token")

        user = User(**data["user"])
        self.session.start(data["token"], user)
        logger.info("user_authenticated", user_id=user.id, role=user.role)
        return user

    def fetch_current_user(self) -> Optional[User]:
        data = self._optional_record("GET", "/auth/me")
        return User(**data) if data else None

    def fetch_users(self) -> list[User]:
        return [User(**row) for row in self._rows("GET", "/users")]

    def add_user(self, data: UserCreate) -> User:
        return User(**self._record("POST", "/users", json=data.to_payload()))

    def update_user(self, user_id: str, data: UserUpdate) -> Optional[User]:
        result = self._optional_record("PUT", f"/users/{user_id}", json=data.to_payload(exclude_none=True))
        return User(**result) if result else None

    def delete_user(self, user_id: str) -> bool:
        result = self._optional_record("DELETE", f"/users/{user_id}")
        return bool(result and result.get("success"))

    # ===================
    # CATEGORIES
    # ===================

    def fetch_categories(self) -> list[Category]:
        return [Category(**row) for row in self._rows("GET", "/categories", auth=False)]

    def add_category(self, data: CategoryCreate) -> Category:
        return Category(**self._record("POST", "/categories", json=data.to_payload()))

    def update_category(self, category: Category) -> Optional[Category]:
        result = self._optional_record("PUT", f"/categories/{category.id}", json=category.to_payload())
        return Category(**result) if result else None

    def delete_category(self, category_id: str) -> dict:
        return self._optional_record("DELETE", f"/categories/{category_id}") or {"success": False}

    # ===================
    # MANUFACTURERS
    # ===================

    def fetch_manufacturers(self) -> list[Manufacturer]:
        return [Manufacturer(**row) for row in self._rows("GET", "/manufacturers", auth=False)]

    def add_manufacturer(self, data: ManufacturerCreate) -> Manufacturer:
        return Manufacturer(**self._record("POST", "/manufacturers", json=data.to_payload()))

    def update_manufacturer(self, manufacturer: Manufacturer) -> Optional[Manufacturer]:
        result = self._optional_record(
            "PUT", f"/manufacturers/{manufacturer.id}", json=manufacturer.to_payload()
        )
        return Manufacturer(**result) if result else None

    def delete_manufacturer(self, manufacturer_id: str) -> dict:
        return self._optional_record("DELETE", f"/manufacturers/{manufacturer_id}") or {"success": False}

    # ===================
    # PRODUCTS
    # ===================

    def fetch_products(
        self,
        query: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[Product]:
        """Public product listing (visible products only)."""
        params = {}
        if query:
            params["q"] = query
        if category_id:
            params["categoryId"] = category_id
        return [Product(**row) for row in self._rows("GET", "/products", params=params, auth=False)]

    def fetch_product(self, product_id: str) -> Optional[Product]:
        data = self._optional_record("GET", f"/products/{product_id}", auth=False)
        return Product(**data) if data else None

    def fetch_all_products_admin(self) -> list[Product]:
        """Every product regardless of visibility."""
        return [Product(**row) for row in self._rows("GET", "/products/admin")]

    def add_product(self, record: ProductRecord) -> Product:
        """
        Raises:
            ApiError: If the backend rejects the product or answers without the created record
        """
        return Product(**self._record("POST", "/products", json=record.to_payload()))

    def update_product(self, product_id: str, record: ProductRecord) -> Optional[Product]:
        payload = {**record.to_payload(), "id": product_id}
        result = self._optional_record("PUT", f"/products/{product_id}", json=payload)
        return Product(**result) if result else None

    def delete_product(self, product_id: str) -> bool:
        result = self._optional_record("DELETE", f"/products/{product_id}")
        return bool(result and result.get("success"))

    def toggle_product_visibility(self, product_id: str) -> Optional[Product]:
        result = self._optional_record("PATCH", f"/products/{product_id}/toggle-visibility")
        return Product(**result) if result else None

    def duplicate_product(self, product_id: str) -> Optional[Product]:
        result = self._optional_record("POST", f"/products/{product_id}/duplicate")
        return Product(**result) if result else None

    def update_product_stock(
        self,
        product_id: str,
        *,
        size_name: Optional[str] = None,
        new_stock: Optional[int] = None,
        sizes: Optional[list[SizeStock]] = None,
        action: Optional[str] = None,
    ) -> Any:
        """
        Set stock for one size, or replace the whole sizes array.

        With action="sell", new_stock is a negative delta the backend
        subtracts from the size.
        """
        if sizes is not None:
            payload: dict[str, Any] = {"updatedSizesArray": [s.to_payload() for s in sizes]}
        else:
            payload = {"sizeName": size_name, "newStock": new_stock}
            if action:
                payload["action"] = action
        return self._request("PUT", f"/products/{product_id}/stock", json=payload)

    # ===================
    # SALES
    # ===================

    def submit_sale(self, sale: SaleCreate) -> SubmittedSale:
        return SubmittedSale(**self._record("POST", "/sales", json=sale.to_payload()))

    def fetch_sales(self) -> list[SubmittedSale]:
        return [SubmittedSale(**row) for row in self._rows("GET", "/sales")]

    def update_sale(self, sale: SubmittedSale) -> Optional[SubmittedSale]:
        result = self._optional_record("PUT", f"/sales/{sale.id}", json=sale.to_payload())
        return SubmittedSale(**result) if result else None


# Singleton instance for convenience
_pos_client: Optional[PosApiClient] = None


def get_pos_client() -> PosApiClient:
    """Get or create the shared PosApiClient (session loaded from settings.session_file)."""
    global _pos_client
    if _pos_client is None:
        _pos_client = PosApiClient(session=Session.load(settings.session_file))
    return _pos_client
