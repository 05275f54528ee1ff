"""
Shared test fixtures.

MockPosApi stands in for PosApiClient: an in-memory backend with the same
method names, recording every mutation so tests can assert on what was
(or was not) sent.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from typing import Any, Optional

from config.session import Session
from exceptions import ApiError, AuthenticationError
from models.catalog import Category, CategoryCreate, Manufacturer, ManufacturerCreate
from models.product import Product, ProductRecord, SizeStock
from models.sales import SaleCreate, SubmittedSale
from models.user import User, UserCreate, UserUpdate
from services.catalog_cache import CatalogCache

from tests.factories import CategoryFactory, ManufacturerFactory, ProductFactory, UserFactory


# ===================
# MOCK POS BACKEND
# ===================

class MockPosApi:
    """
    In-memory POS backend with PosApiClient's interface.

    Usage:
        api.set_categories([CategoryFactory.create(name="Shirts")])
        api.fail("add_product", ApiError("Duplicate code", status_code=409))
        ...
        assert api.mutations() == [("update_product", "p-1")]
    """

    MUTATIONS = {
        "add_product", "update_product", "delete_product", "toggle_product_visibility",
        "duplicate_product", "update_product_stock", "add_category", "update_category",
        "delete_category", "add_manufacturer", "update_manufacturer", "delete_manufacturer",
        "submit_sale", "update_sale", "add_user", "update_user", "delete_user",
    }

    def __init__(self):
        self.session = Session()
        self.categories: list[Category] = []
        self.manufacturers: list[Manufacturer] = []
        self.products: dict[str, Product] = {}
        self.sales: dict[str, SubmittedSale] = {}
        self.users: dict[str, User] = {}
        self.passwords: dict[str, str] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fetch_counts: dict[str, int] = {}
        self._failures: dict[str, Exception] = {}
        self._counter = 0

    # ---- configuration ----

    def set_categories(self, categories: list[Category]) -> None:
        self.categories = list(categories)

    def set_manufacturers(self, manufacturers: list[Manufacturer]) -> None:
        self.manufacturers = list(manufacturers)

    def set_products(self, products: list[Product]) -> None:
        self.products = {p.id: p for p in products}

    def set_users(self, users: list[User], password: str = "secret1") -> None:
        self.users = {u.id: u for u in users}
        self.passwords = {u.username: password for u in users}

    def fail(self, method: str, error: Exception) -> None:
        """Make every later call to `method` raise `error`."""
        self._failures[method] = error

    def mutations(self) -> list[tuple[str, Any]]:
        return [c for c in self.calls if c[0] in self.MUTATIONS]

    # ---- internals ----

    def _call(self, method: str, arg: Any = None) -> None:
        self.calls.append((method, arg))
        if method.startswith("fetch_"):
            self.fetch_counts[method] = self.fetch_counts.get(method, 0) + 1
        if method in self._failures:
            raise self._failures[method]

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-new-{self._counter}"

    def _with_names(self, product_id: str, record: ProductRecord) -> Product:
        categories = {c.id: c.name for c in self.categories}
        manufacturers = {m.id: m.name for m in self.manufacturers}
        return Product(
            id=product_id,
            category_name=categories.get(record.category_id),
            manufacturer_name=manufacturers.get(record.manufacturer_id),
            **record.model_dump(),
        )

    # ---- auth & users ----

    def authenticate(self, username: str, password: str) -> User:
        self._call("authenticate", username)
        user = next((u for u in self.users.values() if u.username == username), None)
        if user is None or self.passwords.get(username) != password:
            raise AuthenticationError("Invalid credentials")
        self.session.start(f"token-{user.id}", user)
        return user

    def fetch_current_user(self) -> Optional[User]:
        self._call("fetch_current_user")
        if not self.session.token:
            raise ApiError("No token provided", status_code=401)
        user_id = self.session.token.removeprefix("token-")
        if user_id not in self.users:
            raise ApiError("Invalid token", status_code=401)
        return self.users[user_id]

    def fetch_users(self) -> list[User]:
        self._call("fetch_users")
        return list(self.users.values())

    def add_user(self, data: UserCreate) -> User:
        self._call("add_user", data.username)
        user = User(id=self._next_id("user"), username=data.username, role=data.role)
        self.users[user.id] = user
        self.passwords[user.username] = data.password
        return user

    def update_user(self, user_id: str, data: UserUpdate) -> Optional[User]:
        self._call("update_user", user_id)
        current = self.users.get(user_id)
        if current is None:
            return None
        changes = data.model_dump(exclude_none=True, exclude={"password"})
        updated = current.model_copy(update=changes)
        self.users[user_id] = updated
        if data.password:
            self.passwords[updated.username] = data.password
        return updated

    def delete_user(self, user_id: str) -> bool:
        self._call("delete_user", user_id)
        return self.users.pop(user_id, None) is not None

    # ---- categories & manufacturers ----

    def fetch_categories(self) -> list[Category]:
        self._call("fetch_categories")
        return list(self.categories)

    def add_category(self, data: CategoryCreate) -> Category:
        self._call("add_category", data.name)
        category = Category(id=self._next_id("cat"), name=data.name)
        self.categories.append(category)
        return category

    def update_category(self, category: Category) -> Optional[Category]:
        self._call("update_category", category.id)
        for i, c in enumerate(self.categories):
            if c.id == category.id:
                self.categories[i] = category
                return category
        return None

    def delete_category(self, category_id: str) -> dict:
        self._call("delete_category", category_id)
        if any(p.category_id == category_id for p in self.products.values()):
            return {"success": False, "message": "Category is in use by products"}
        self.categories = [c for c in self.categories if c.id != category_id]
        return {"success": True}

    def fetch_manufacturers(self) -> list[Manufacturer]:
        self._call("fetch_manufacturers")
        return list(self.manufacturers)

    def add_manufacturer(self, data: ManufacturerCreate) -> Manufacturer:
        self._call("add_manufacturer", data.name)
        manufacturer = Manufacturer(id=self._next_id("man"), name=data.name)
        self.manufacturers.append(manufacturer)
        return manufacturer

    def update_manufacturer(self, manufacturer: Manufacturer) -> Optional[Manufacturer]:
        self._call("update_manufacturer", manufacturer.id)
        for i, m in enumerate(self.manufacturers):
            if m.id == manufacturer.id:
                self.manufacturers[i] = manufacturer
                return manufacturer
        return None

    def delete_manufacturer(self, manufacturer_id: str) -> dict:
        self._call("delete_manufacturer", manufacturer_id)
        if any(p.manufacturer_id == manufacturer_id for p in self.products.values()):
            return {"success": False, "message": "Manufacturer is in use by products"}
        self.manufacturers = [m for m in self.manufacturers if m.id != manufacturer_id]
        return {"success": True}

    # ---- products ----

    def fetch_products(self, query: Optional[str] = None, category_id: Optional[str] = None) -> list[Product]:
        self._call("fetch_products", (query, category_id))
        result = [p for p in self.products.values() if p.is_visible]
        if query:
            result = [p for p in result if query.lower() in p.title.lower() or query.lower() in p.code.lower()]
        if category_id:
            result = [p for p in result if p.category_id == category_id]
        return result

    def fetch_product(self, product_id: str) -> Optional[Product]:
        self._call("fetch_product", product_id)
        if product_id not in self.products:
            raise ApiError("Product not found", status_code=404)
        return self.products[product_id]

    def fetch_all_products_admin(self) -> list[Product]:
        self._call("fetch_all_products_admin")
        return list(self.products.values())

    def add_product(self, record: ProductRecord) -> Product:
        self._call("add_product", record.code)
        product = self._with_names(self._next_id("prod"), record)
        self.products[product.id] = product
        return product

    def update_product(self, product_id: str, record: ProductRecord) -> Optional[Product]:
        self._call("update_product", product_id)
        if product_id not in self.products:
            return None
        product = self._with_names(product_id, record)
        self.products[product_id] = product
        return product

    def delete_product(self, product_id: str) -> bool:
        self._call("delete_product", product_id)
        return self.products.pop(product_id, None) is not None

    def toggle_product_visibility(self, product_id: str) -> Optional[Product]:
        self._call("toggle_product_visibility", product_id)
        current = self.products.get(product_id)
        if current is None:
            return None
        self.products[product_id] = current.model_copy(update={"is_visible": not current.is_visible})
        return self.products[product_id]

    def duplicate_product(self, product_id: str) -> Optional[Product]:
        self._call("duplicate_product", product_id)
        current = self.products.get(product_id)
        if current is None:
            return None
        copy = current.model_copy(update={
            "id": self._next_id("prod"),
            "code": f"{current.code}-COPY",
            "title": f"{current.title} (Copy)",
        })
        self.products[copy.id] = copy
        return copy

    def update_product_stock(
        self,
        product_id: str,
        *,
        size_name: Optional[str] = None,
        new_stock: Optional[int] = None,
        sizes: Optional[list[SizeStock]] = None,
        action: Optional[str] = None,
    ) -> Any:
        self._call("update_product_stock", (product_id, size_name, new_stock, action))
        current = self.products[product_id]
        if sizes is not None:
            updated = list(sizes)
        else:
            updated = []
            for s in current.sizes:
                if s.size == size_name:
                    stock = s.stock + new_stock if action == "sell" else new_stock
                    updated.append(SizeStock(size=s.size, stock=max(stock, 0)))
                else:
                    updated.append(s)
        self.products[product_id] = current.model_copy(update={"sizes": updated})
        return {"id": product_id}

    # ---- sales ----

    def submit_sale(self, sale: SaleCreate) -> SubmittedSale:
        self._call("submit_sale", sale.total_amount)
        submitted = SubmittedSale(id=self._next_id("sale"), **sale.model_dump())
        self.sales[submitted.id] = submitted
        return submitted

    def fetch_sales(self) -> list[SubmittedSale]:
        self._call("fetch_sales")
        return list(self.sales.values())

    def update_sale(self, sale: SubmittedSale) -> Optional[SubmittedSale]:
        self._call("update_sale", sale.id)
        if sale.id not in self.sales:
            return None
        self.sales[sale.id] = sale
        return sale


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_api() -> MockPosApi:
    """
    Empty mock backend.

    Usage:
        def test_something(mock_api):
            mock_api.set_products([ProductFactory.create()])
    """
    return MockPosApi()


@pytest.fixture
def cache() -> CatalogCache:
    """Fresh cache per test (never the module singleton)."""
    return CatalogCache()


@pytest.fixture
def catalog_api(mock_api) -> MockPosApi:
    """
    Backend with two categories, two manufacturers and two products.

    Products: TSH-001 (Shirts/Acme, S:5 M:3) and CAP-010 (Hats/Globex, One Size:0, hidden).
    """
    mock_api.set_categories([
        CategoryFactory.create(id="cat-1", name="Shirts"),
        CategoryFactory.create(id="cat-2", name="Hats"),
    ])
    mock_api.set_manufacturers([
        ManufacturerFactory.create(id="man-1", name="Acme"),
        ManufacturerFactory.create(id="man-2", name="Globex"),
    ])
    mock_api.set_products([
        ProductFactory.create(
            id="p-1", title="Basic Tee", code="TSH-001", price=19.99,
            category_id="cat-1", category_name="Shirts",
            manufacturer_id="man-1", manufacturer_name="Acme",
            sizes=[("S", 5), ("M", 3)],
        ),
        ProductFactory.create(
            id="p-2", title="Cap", code="CAP-010", price=9.5,
            category_id="cat-2", category_name="Hats",
            manufacturer_id="man-2", manufacturer_name="Globex",
            sizes=[("One Size", 0)], is_visible=False,
        ),
    ])
    return mock_api


@pytest.fixture
def admin_user() -> User:
    return UserFactory.create(id="u-admin", username="admin", role="admin")


@pytest.fixture
def valid_row() -> dict:
    """Import row that resolves against catalog_api."""
    return {
        "Title": "Hoodie",
        "Code": "HD-100",
        "Price": "49.90",
        "Category": "Shirts",
        "Manufacturer": "Acme",
        "Image URL": "https://img.example.com/hd-100.jpg",
        "Sizes": "S,M,L",
        "Stocks": "1,2,3",
    }
