"""
Pytest configuration and fixtures for CalcFlow tests.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from calcflow.batch.models import ColumnMetadata, ColumnType, Dataset
from calcflow.main import create_app


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    app = create_app()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def emissions_dataset() -> Dataset:
    """Small dataset with a unit-bearing numeric column and a text column."""
    return Dataset(
        rows=[
            {"Fuel": "diesel", "Litres": 100, "CO2": 10},
            {"Fuel": "petrol", "Litres": 200, "CO2": 20},
            {"Fuel": "diesel", "Litres": 300, "CO2": 30},
        ],
        columns=[
            ColumnMetadata(id="Fuel", name="Fuel", type=ColumnType.STRING),
            ColumnMetadata(id="Litres", name="Litres", type=ColumnType.NUMBER, unit="L"),
            ColumnMetadata(id="CO2", name="CO2", type=ColumnType.NUMBER, unit="kg"),
        ],
    )
