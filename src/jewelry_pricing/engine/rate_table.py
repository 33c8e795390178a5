"""
Rate Table Engine - derived rate grid for a shop's rate table.

Each cell is a percentage of the current buying or selling rate, scaled to
the table's value per gram and rounded by its column's policy.
"""
from typing import Optional

import pandas as pd

from .models import CellConfig, Metal, Rate, RateTableConfig
from .rounding import round_half_up, round_table_cell
from ..errors import ConfigurationError


class RateTableEngine:
    """
    Evaluates the cells of one RateTableConfig against a rate.

    A cell without a configuration, or pointing at a row or column the table
    does not define, evaluates to None so a half-built table still renders.
    """

    def __init__(self, table: RateTableConfig):
        self.table = table
        self.metal = Metal.parse(table.metal_type)

    def _resolve(self, row_index: int, col_index: int) -> Optional[CellConfig]:
        if self.table.find_row(row_index) is None or self.table.find_column(col_index) is None:
            return None
        return self.table.find_cell(row_index, col_index)

    def require_cell(self, row_index: int, col_index: int) -> CellConfig:
        """Cell configuration for (row, col), raising when the table lacks it."""
        cell = self._resolve(row_index, col_index)
        if cell is None:
            raise ConfigurationError(
                f"No {self.metal.value.lower()} rate table cell for row {row_index}, column {col_index}",
                details={"rowIndex": row_index, "colIndex": col_index},
            )
        return cell

    def calculate_cell_value(self, row_index: int, col_index: int, rate: Optional[Rate]) -> Optional[float]:
        """
        Value of one cell: (rate / divisor) × value per gram × percentage / 100.

        Returns None when the cell is not configured, there is no rate, or
        the selected rate is zero.
        """
        cell = self._resolve(row_index, col_index)
        if cell is None or rate is None:
            return None

        base_rate = rate.rate_for(self.metal, cell.use_rate)
        if not base_rate:
            return None

        value = base_rate / Rate.per_gram_divisor(self.metal) * self.table.value_per_gram * cell.percentage / 100

        column = self.table.find_column(col_index)
        if column.rounding_enabled:
            return round_table_cell(value, column.rounding_type, column.round_direction)
        return round_half_up(value, 2)

    def calculate_all_values(self, rate: Optional[Rate]) -> list[list[Optional[float]]]:
        """Row-major grid in the order rows and columns are defined."""
        return [
            [self.calculate_cell_value(row.row_index, col.col_index, rate) for col in self.table.columns]
            for row in self.table.rows
        ]

    def to_frame(self, rate: Optional[Rate]) -> pd.DataFrame:
        return grid_to_frame(self.table, self.calculate_all_values(rate))


def compute_rate_table_cell(table: RateTableConfig, row_index: int, col_index: int,
                            rate: Optional[Rate]) -> Optional[float]:
    return RateTableEngine(table).calculate_cell_value(row_index, col_index, rate)


def compute_rate_table_grid(table: RateTableConfig, rate: Optional[Rate]) -> list[list[Optional[float]]]:
    return RateTableEngine(table).calculate_all_values(rate)


def grid_to_frame(table: RateTableConfig, values: list[list[Optional[float]]]) -> pd.DataFrame:
    """
    Render a computed grid as a DataFrame for export.

    Indexed by row title with one column per column title; unconfigured
    cells are NaN.
    """
    frame = pd.DataFrame(
        values,
        index=[row.title for row in table.rows],
        columns=[col.title for col in table.columns],
        dtype="float64",
    )
    frame.index.name = Metal.parse(table.metal_type).value.title()
    return frame
