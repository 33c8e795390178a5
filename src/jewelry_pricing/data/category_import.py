"""
Category Import - bulk-loads pricing categories from a CSV or Excel sheet.

One row per category. NEW rows need the markup columns, OLD rows the scrap
columns; the other group may be left blank. Resale options are not part of
the sheet and are configured per category afterwards.

Columns:
    type, metal, code, item_category,
    purity_percentage, buying_from_wholesaler_percentage,
    selling_percentage, wholesaler_labour_per_gram,
    true_purity_percentage, scrap_buy_own_percentage,
    scrap_buy_other_percentage,
    description_universal, description_admin, description_manager,
    description_pro_client, description_client
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings
from ..engine.models import Category, Descriptions, JewelryType, Metal
from ..errors import ValidationError
from ..services.catalog_service import CategoryCatalog
from ..services.validation import validate_category

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('type', 'metal', 'code')

NEW_NUMERIC_COLUMNS = (
    'purity_percentage',
    'buying_from_wholesaler_percentage',
    'selling_percentage',
    'wholesaler_labour_per_gram',
)
OLD_NUMERIC_COLUMNS = (
    'true_purity_percentage',
    'scrap_buy_own_percentage',
    'scrap_buy_other_percentage',
)


def parse_optional_float(value: str) -> Optional[float]:
    """Parse optional float."""
    if not value or value.strip() == '':
        return None
    return float(value)


def parse_optional_str(value: str) -> Optional[str]:
    """Parse optional string (empty = None)."""
    if not value or value.strip() == '':
        return None
    return value.strip()


def read_sheet(path: Path) -> pd.DataFrame:
    """Read a CSV or Excel sheet as strings with stripped headers and cells."""
    if path.suffix.lower() in ('.xlsx', '.xlsm'):
        df = pd.read_excel(path, dtype=str, engine='openpyxl')
    else:
        df = pd.read_csv(path, dtype=str)

    df = df.fillna('')
    df.columns = [str(c).strip().lower() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def parse_category_row(row: dict, line_num: int, shop_id: str) -> tuple[Optional[Category], list[str]]:
    """
    Parse and validate a category from a sheet row.

    Returns (category, errors) - category is None if validation failed.
    """
    errors = []

    type_value = (parse_optional_str(row.get('type', '')) or '').upper()
    try:
        kind = JewelryType(type_value)
    except ValueError:
        errors.append(f"Line {line_num}: type must be NEW or OLD, got '{type_value}'")
        return None, errors

    try:
        metal = Metal.parse(row.get('metal', ''))
    except ValueError:
        errors.append(f"Line {line_num}: metal must be GOLD or SILVER, got '{row.get('metal', '')}'")
        return None, errors

    numbers = {}
    columns = NEW_NUMERIC_COLUMNS if kind is JewelryType.NEW else OLD_NUMERIC_COLUMNS
    for column in columns:
        try:
            numbers[column] = parse_optional_float(row.get(column, ''))
        except ValueError:
            errors.append(f"Line {line_num}: {column} must be numeric")
    if errors:
        return None, errors

    descriptions = Descriptions(
        universal=row.get('description_universal', ''),
        admin=row.get('description_admin', ''),
        manager=row.get('description_manager', ''),
        pro_client=row.get('description_pro_client', ''),
        client=row.get('description_client', ''),
    )

    category = Category(
        type=kind,
        metal=metal,
        code=parse_optional_str(row.get('code', '')) or '',
        shop_id=shop_id,
        descriptions=descriptions,
        item_category=parse_optional_str(row.get('item_category', '')) if kind is JewelryType.NEW else None,
        **numbers,
    )
    if kind is JewelryType.NEW and category.wholesaler_labour_per_gram is None:
        category.wholesaler_labour_per_gram = 0

    validation = validate_category(category)
    if not validation.valid:
        return None, [f"Line {line_num}: {e}" for e in validation.errors]

    return category, []


def import_categories(
    path: Path,
    shop_id: str,
    catalog: Optional[CategoryCatalog] = None,
) -> tuple[list[Category], list[str]]:
    """
    Load categories from a sheet, adding them to the catalog when given.

    A relative path is read from the project root.
    Rows that fail validation or clash with an existing code are reported
    and skipped; the remaining rows are still imported.

    Returns (categories, errors).
    """
    path = Path(path)
    if not path.is_absolute():
        path = get_settings().project_root / path
    if not path.exists():
        return [], [f"Category sheet not found: {path}"]

    df = read_sheet(path)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        return [], [f"Missing required columns: {', '.join(missing)}"]

    categories = []
    all_errors = []
    for line_num, row in enumerate(df.to_dict('records'), start=2):  # +2 for 1-indexed header row
        category, errors = parse_category_row(row, line_num, shop_id)
        if errors:
            all_errors.extend(errors)
            continue

        if catalog is not None:
            try:
                category = catalog.add(category)
            except ValidationError as e:
                all_errors.append(f"Line {line_num}: {e.message}")
                continue
        categories.append(category)

    logger.info("Imported %d categories for shop %s from %s (%d errors)",
                len(categories), shop_id, path.name, len(all_errors))
    return categories, all_errors
