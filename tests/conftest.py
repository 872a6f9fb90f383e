"""
Test Suite Configuration
"""
from datetime import date

import pytest

from retail_analytics.analytics import Customer, Product, Sale, Snapshot
from retail_analytics.config import Settings, get_settings


AS_OF = date(2024, 6, 30)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset between tests"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(APP_ENV="testing")


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def customers() -> list:
    """Six customers across three countries; C6 never purchases"""
    return [
        Customer("C1", "Alice", "Smith", "F", "Married", "alice@example.com", "US", date(2023, 1, 10), date(1990, 5, 1)),
        Customer("C2", "Bob", "Jones", "M", "Single", "bob@example.com", "US", date(2023, 3, 5), date(1960, 7, 15)),
        Customer("C3", "Cara", "Lee", "F", "Single", "cara@example.com", "UK", date(2023, 6, 20), date(2000, 12, 1)),
        Customer("C4", "Dan", "Brown", "M", "Married", "dan@example.com", "UK", date(2023, 11, 1), date(1985, 6, 30)),
        Customer("C5", "Eve", "Black", "F", "Divorced", "eve@example.com", "FR", date(2024, 2, 14), date(1974, 6, 30)),
        Customer("C6", "Finn", "Gray", "M", "Single", "finn@example.com", "FR", date(2024, 5, 1), date(1995, 1, 1)),
    ]


@pytest.fixture
def products() -> list:
    """One product per stock band plus an unsold chair"""
    return [
        Product("P1", "Laptop", "Electronics", 1000.0, 700.0, 0),
        Product("P2", "Phone", "Electronics", 500.0, 300.0, 150),
        Product("P3", "Desk", "Furniture", 200.0, 120.0, 300),
        Product("P4", "Pen", "Office", 2.0, 1.0, 600),
        Product("P5", "Chair", "Furniture", 100.0, 60.0, 40),
    ]


@pytest.fixture
def sales() -> list:
    """Sales for C1-C5; S11 references an unknown customer, S12 an unknown product"""
    return [
        Sale("S01", "C1", "P1", date(2024, 1, 5), 1),
        Sale("S02", "C1", "P2", date(2024, 1, 8), 1),
        Sale("S03", "C1", "P1", date(2024, 1, 15), 1),
        Sale("S04", "C1", "P2", date(2024, 2, 10), 2),
        Sale("S05", "C2", "P3", date(2024, 2, 12), 3),
        Sale("S06", "C2", "P4", date(2024, 3, 1), 50),
        Sale("S07", "C3", "P2", date(2024, 3, 15), 1),
        Sale("S08", "C3", "P4", date(2024, 6, 20), 10),
        Sale("S09", "C4", "P3", date(2024, 4, 10), 1),
        Sale("S10", "C5", "P4", date(2024, 5, 25), 5),
        Sale("S11", "C9", "P2", date(2024, 5, 30), 1),
        Sale("S12", "C2", "P9", date(2024, 6, 1), 1, amount=42.0),
    ]


@pytest.fixture
def snapshot(customers, products, sales) -> Snapshot:
    """Fixture snapshot shared by the report tests"""
    return Snapshot.from_records(customers, products, sales)
