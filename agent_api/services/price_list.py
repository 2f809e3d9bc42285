"""In-memory price list loaded from a spreadsheet.

The whole list is read with pandas and swapped in by a single assignment,
so readers always see either the old tuple or the new one. There is no
incremental update.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from agent_api.core.config import Settings
from agent_api.core.logging import elapsed_ms, log_external_call
from agent_api.models.product import Product
from agent_api.utils.converters import cell_text, safe_float, safe_int

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


class PriceListError(Exception):
    """The price list file could not be read."""


@dataclass(frozen=True)
class ColumnMap:
    """Spreadsheet header for each Product field."""

    code: str = "CODIGO"
    name: str = "PRODUCTO"
    unit: str = "UM"
    unit_cost: str = "COSTO"
    stock: str = "STOCK"
    cost_with_tax: str = "COSTO_IVA"
    price: str = "PRECIO"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ColumnMap":
        return cls(
            code=settings.column_code,
            name=settings.column_name,
            unit=settings.column_unit,
            unit_cost=settings.column_unit_cost,
            stock=settings.column_stock,
            cost_with_tax=settings.column_cost_with_tax,
            price=settings.column_price,
        )


def _header_key(header: Any) -> str:
    return " ".join(str(header).split()).upper()


def read_frame(path: Path, sheet: str = "") -> pd.DataFrame:
    """Read a CSV or Excel file into a DataFrame of raw cell values."""
    try:
        if path.suffix.lower() in EXCEL_SUFFIXES:
            return pd.read_excel(path, sheet_name=sheet or 0, dtype=object)
        return pd.read_csv(path, dtype=object)
    except FileNotFoundError as e:
        raise PriceListError(f"Price list not found at {path}") from e
    except (OSError, ValueError) as e:
        raise PriceListError(f"Could not read price list {path}: {e}") from e


def frame_to_products(df: pd.DataFrame, columns: ColumnMap) -> list[Product]:
    """Map spreadsheet rows to Products, skipping rows without code or name."""
    by_key = {_header_key(c): c for c in df.columns}
    code_col = by_key.get(_header_key(columns.code))
    name_col = by_key.get(_header_key(columns.name))
    if code_col is None and name_col is None:
        raise PriceListError(
            f"Price list has neither a '{columns.code}' nor a '{columns.name}' column"
        )

    def col(header: str) -> Any:
        return by_key.get(_header_key(header))

    unit_col = col(columns.unit)
    unit_cost_col = col(columns.unit_cost)
    stock_col = col(columns.stock)
    cost_with_tax_col = col(columns.cost_with_tax)
    price_col = col(columns.price)

    products: list[Product] = []
    for row in df.to_dict("records"):
        code = cell_text(row.get(code_col)) if code_col is not None else ""
        name = cell_text(row.get(name_col)) if name_col is not None else ""
        if not code and not name:
            continue
        products.append(
            Product(
                code=code,
                name=name,
                unit=cell_text(row.get(unit_col)) if unit_col is not None else "",
                unit_cost=safe_float(row.get(unit_cost_col)) if unit_cost_col is not None else 0.0,
                stock=safe_int(row.get(stock_col)) if stock_col is not None else 0,
                cost_with_tax=(
                    safe_float(row.get(cost_with_tax_col)) if cost_with_tax_col is not None else 0.0
                ),
                price=safe_float(row.get(price_col)) if price_col is not None else 0.0,
            )
        )
    return products


class PriceListStore:
    """Holds the current price list and answers lookups over it."""

    def __init__(self, path: str | Path, columns: ColumnMap | None = None, sheet: str = "") -> None:
        self.path = Path(path)
        self.columns = columns or ColumnMap()
        self.sheet = sheet
        self._products: tuple[Product, ...] = ()
        self.loaded_at: datetime | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PriceListStore":
        return cls(
            settings.price_list_path,
            columns=ColumnMap.from_settings(settings),
            sheet=settings.price_list_sheet,
        )

    @classmethod
    def from_products(cls, products: list[Product]) -> "PriceListStore":
        """Build a store around already-loaded products (no file behind it)."""
        store = cls(Path("."))
        store.replace(products)
        return store

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    def __len__(self) -> int:
        return len(self._products)

    def replace(self, products: list[Product]) -> None:
        self._products = tuple(products)
        self.loaded_at = datetime.now()

    def reload(self) -> int:
        """Re-read the spreadsheet and replace the whole list.

        On failure the previous list stays in place and PriceListError is raised.
        """
        start = time.perf_counter()
        try:
            products = frame_to_products(read_frame(self.path, self.sheet), self.columns)
        except PriceListError:
            log_external_call("spreadsheet", "load", False, elapsed_ms(start))
            raise
        self.replace(products)
        log_external_call("spreadsheet", "load", True, elapsed_ms(start))
        logger.info(f"Loaded {len(products)} products from {self.path}")
        return len(products)

    def get_by_code(self, code: str) -> Product | None:
        wanted = code.strip().casefold()
        for product in self._products:
            if product.code.casefold() == wanted:
                return product
        return None

    def search(self, query: str, limit: int | None = None) -> list[Product]:
        """Case-insensitive substring search over code and name."""
        needle = query.strip().casefold()
        if not needle:
            return []
        results = [
            p
            for p in self._products
            if needle in p.code.casefold() or needle in p.name.casefold()
        ]
        return results[:limit] if limit else results
