# crm_analytics/case_analytics/models.py
"""
Data Models for Case Analytics

Plain value objects exchanged with the data-store and rendering layers,
plus helpers that normalize inbound collections into DataFrames.

Inbound collections may be:
- a pandas DataFrame
- a list of dicts (as returned by the data store)
- a list of CaseRecord / CaseProductLine / Product dataclasses
"""

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from .constants import SELECTION_FIELDS, ROWS, CASE_COLUMNS

logger = logging.getLogger(__name__)


# =============================================================================
# INBOUND RECORDS
# =============================================================================

@dataclass
class CaseRecord:
    """One recorded sales visit."""
    id: Any
    case_date: Optional[Union[date, str]] = None
    status: Optional[str] = None
    account_type: Optional[str] = None
    submitted_by: Any = None
    submitted_by_name: Optional[str] = None
    doctor_id: Any = None
    doctor_name: Optional[str] = None
    account_id: Any = None
    account_name: Optional[str] = None
    total_company_units: int = 0
    total_competitor_units: int = 0
    case_code: Optional[str] = None
    line_name: Optional[str] = None


@dataclass
class CaseProductLine:
    """One product entry on a case."""
    case_id: Any
    product_id: Any = None
    product_name: Optional[str] = None
    company_name: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    is_company_product: bool = False
    units: int = 0
    sequence: Optional[int] = None


@dataclass
class Product:
    """Catalog product, used to complete product option lists."""
    id: Any
    name: Optional[str] = None
    company: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    is_company_product: bool = False


# =============================================================================
# FILTER SELECTION
# =============================================================================

@dataclass(frozen=True)
class FilterSelection:
    """
    Selection for one filter row.

    Attributes:
        company: Company name (exact match)
        category: Category (exact match)
        sub_category: Sub-category (exact match)
        product: Product id if known, else product name

    Blank strings are stored as None. An empty selection matches every
    line of its row's side.
    """
    company: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    product: Optional[str] = None

    def __post_init__(self):
        for name in SELECTION_FIELDS:
            value = getattr(self, name)
            object.__setattr__(self, name, _clean_selection_value(value))

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> 'FilterSelection':
        """Build from a dict; accepts the camelCase `subCategory` key too."""
        if not values:
            return cls()
        return cls(
            company=values.get('company'),
            category=values.get('category'),
            sub_category=values.get('sub_category', values.get('subCategory')),
            product=values.get('product'),
        )

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in SELECTION_FIELDS)

    def with_field(self, name: str, value: Any) -> 'FilterSelection':
        """
        Return a new selection with `name` set and every lower field cleared.

        Example:
            >>> sel = FilterSelection(company='A', category='Stents')
            >>> sel.with_field('company', 'B')
            FilterSelection(company='B', category=None, sub_category=None, product=None)
        """
        if name not in SELECTION_FIELDS:
            raise ValueError(f"Unknown selection field {name!r}; expected one of {SELECTION_FIELDS}")
        position = SELECTION_FIELDS.index(name)
        changes = {name: value}
        for lower in SELECTION_FIELDS[position + 1:]:
            changes[lower] = None
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {name: getattr(self, name) for name in SELECTION_FIELDS}


def _clean_selection_value(value: Any) -> Optional[str]:
    if is_unset(value):
        return None
    return product_key(value, None) if not isinstance(value, str) else value.strip()


# =============================================================================
# OUTBOUND VALUES
# =============================================================================

@dataclass(frozen=True)
class ProductOption:
    value: str
    label: str


@dataclass
class OptionSet:
    """Option lists for one filter row."""
    companies: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    sub_categories: List[str] = field(default_factory=list)
    product_options: List[ProductOption] = field(default_factory=list)

    @property
    def product_values(self) -> List[str]:
        return [option.value for option in self.product_options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'companies': list(self.companies),
            'categories': list(self.categories),
            'sub_categories': list(self.sub_categories),
            'product_options': [
                {'value': option.value, 'label': option.label}
                for option in self.product_options
            ],
        }


@dataclass
class DualRowOptions:
    company: OptionSet
    competitor: OptionSet

    def for_row(self, row: str) -> OptionSet:
        validate_row(row)
        return getattr(self, row)


@dataclass
class MetricsResult:
    """Stat-card metrics for one filter state."""
    company_case_count: int = 0
    competitor_case_count: int = 0
    mixed_case_count: int = 0
    total_case_count: int = 0
    company_units: int = 0
    competitor_units: int = 0
    active_doctors: int = 0
    active_accounts: int = 0

    def to_dict(self) -> Dict[str, int]:
        return dataclasses.asdict(self)


@dataclass
class ChartSeries:
    """Labels/values pair consumed by chart renderers."""
    labels: List[str] = field(default_factory=list)
    data: List[float] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(self.data)

    def to_dict(self) -> Dict[str, list]:
        return {'labels': list(self.labels), 'data': list(self.data)}

    def to_frame(self, value_name: str = 'value') -> pd.DataFrame:
        return pd.DataFrame({'label': self.labels, value_name: self.data})


# =============================================================================
# NORMALIZATION HELPERS
# =============================================================================

def validate_row(row: str) -> str:
    if row not in ROWS:
        raise ValueError(f"Unknown filter row {row!r}; expected one of {ROWS}")
    return row


def is_unset(value: Any) -> bool:
    """None, NaN and blank strings are all treated as unset."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == '':
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def set_mask(series: pd.Series) -> pd.Series:
    """Boolean mask of values that are set (not None/NaN/blank)."""
    return series.notna() & (series.astype(str).str.strip() != '')


def product_key(product_id: Any, product_name: Any) -> Optional[str]:
    """
    Surrogate key for a product: the id as a string when present,
    otherwise the product name.
    """
    if not is_unset(product_id):
        if isinstance(product_id, float) and product_id.is_integer():
            return str(int(product_id))
        return str(product_id).strip()
    if not is_unset(product_name):
        return str(product_name).strip()
    return None


def _as_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict):
        return item
    if dataclasses.is_dataclass(item):
        return dataclasses.asdict(item)
    if isinstance(item, pd.Series):
        return item.to_dict()
    return dict(vars(item))


def to_frame(
    data: Union[pd.DataFrame, Iterable[Any], None],
    columns: List[str]
) -> pd.DataFrame:
    """
    Normalize an inbound collection into a DataFrame with `columns`.

    Missing fields become None; extra fields are kept after `columns`.
    Records are copied column-by-column into object Series so integer ids
    never turn into floats next to a None.
    """
    if data is None:
        rows = []
    elif isinstance(data, pd.DataFrame):
        frame = data.copy()
        for col in columns:
            if col not in frame.columns:
                frame[col] = None
        extras = [col for col in frame.columns if col not in columns]
        return frame[columns + extras].reset_index(drop=True)
    else:
        rows = [_as_dict(item) for item in data if item is not None]

    all_columns = list(columns)
    for row in rows:
        for key in row:
            if key not in all_columns:
                all_columns.append(key)

    return pd.DataFrame({
        col: pd.Series([row.get(col) for row in rows], dtype=object)
        for col in all_columns
    })


def prepare_cases(cases: Union[pd.DataFrame, Iterable[Any], None]) -> pd.DataFrame:
    """Normalize case records; unit totals default to 0."""
    frame = to_frame(cases, CASE_COLUMNS)
    frame['total_company_units'] = coerce_count(frame['total_company_units'])
    frame['total_competitor_units'] = coerce_count(frame['total_competitor_units'])
    return frame


def strip_text(series: pd.Series) -> pd.Series:
    """Strip surrounding whitespace from string values; other values are kept."""
    return pd.Series(
        [value.strip() if isinstance(value, str) else value for value in series],
        index=series.index,
        dtype=object,
    )


def coerce_flag(series: pd.Series) -> pd.Series:
    """Boolean column where unset values count as False."""
    return pd.Series(
        [bool(value) if not is_unset(value) else False for value in series],
        index=series.index,
        dtype=bool,
    )


def coerce_count(series: pd.Series) -> pd.Series:
    """Integer column where unset or non-numeric values count as 0."""
    return pd.to_numeric(series, errors='coerce').fillna(0).astype('int64')


def case_identifier(case: Any) -> Any:
    """Extract a case id from an id, a mapping, a Series or a CaseRecord."""
    if isinstance(case, (dict, pd.Series)):
        return case.get('id')
    if hasattr(case, 'id'):
        return case.id
    return case
