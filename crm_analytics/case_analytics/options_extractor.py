# crm_analytics/case_analytics/options_extractor.py
"""
Filter Options Extractor - derive filter option lists from loaded case products

Builds the option lists for the two filter rows (company products vs
competitor products) from the case-product lines already in memory, so no
extra data-store round trip is needed to populate the selection widgets.

The two rows are derived from disjoint partitions of the lines: a company
product never shows up in the competitor lists, even when names collide.

CHANGELOG:
- v1.1.0: Dual-row options (company / competitor partitions)
          - Catalog products never used on a case are appended per side
- v1.0.0: Initial implementation (single-row options)

VERSION: 1.1.0
"""

import logging
import time
from typing import Any, Iterable, List, Optional, Set, Union

import pandas as pd

from ..config import config
from .constants import (
    PRODUCT_COLUMNS, UNKNOWN_PRODUCT_LABEL, COMPANY_ROW, COMPETITOR_ROW,
)
from .indexer import prepare_lines, CaseProductIndex
from .models import (
    OptionSet, DualRowOptions, ProductOption,
    to_frame, set_mask, strip_text, coerce_flag, product_key, is_unset, validate_row,
)

logger = logging.getLogger(__name__)

LinesInput = Union[CaseProductIndex, pd.DataFrame, Iterable[Any], None]


# =============================================================================
# HELPERS
# =============================================================================

def distinct_sorted(series: pd.Series) -> List[str]:
    """Distinct non-empty values, sorted lexicographically."""
    if series.empty:
        return []
    values = series[set_mask(series)].astype(str).unique().tolist()
    return sorted(values)


def product_options_from_lines(lines: pd.DataFrame, seen: Optional[Set[str]] = None) -> List[ProductOption]:
    """
    De-duplicated product options from lines, first occurrence wins.

    Args:
        lines: Prepared lines (must contain product_key, product_name)
        seen: Optional set of keys to skip; updated in place
    """
    seen = set() if seen is None else seen
    options = []
    for key, name in zip(lines['product_key'], lines['product_name']):
        if key is None or key in seen:
            continue
        seen.add(key)
        label = UNKNOWN_PRODUCT_LABEL if is_unset(name) else str(name)
        options.append(ProductOption(value=key, label=label))
    return options


def catalog_product_options(catalog: pd.DataFrame, seen: Set[str]) -> List[ProductOption]:
    """Catalog products whose key is not in `seen` (updated in place)."""
    options = []
    for pid, name in zip(catalog['id'], catalog['name']):
        key = product_key(pid, None)
        if key is None or key in seen:
            continue
        seen.add(key)
        label = UNKNOWN_PRODUCT_LABEL if is_unset(name) else str(name)
        options.append(ProductOption(value=key, label=label))
    return options


def prepare_catalog(catalog: Union[pd.DataFrame, Iterable[Any], None]) -> pd.DataFrame:
    frame = to_frame(catalog, PRODUCT_COLUMNS)
    for col in ('name', 'company', 'category', 'sub_category'):
        frame[col] = strip_text(frame[col])
    frame['is_company_product'] = coerce_flag(frame['is_company_product'])
    return frame


def partition_lines(lines: pd.DataFrame, row: str) -> pd.DataFrame:
    """Lines of one side: company products or competitor products."""
    validate_row(row)
    if lines.empty:
        return lines
    mask = lines['is_company_product'] if row == COMPANY_ROW else ~lines['is_company_product']
    return lines[mask]


# =============================================================================
# EXTRACTOR
# =============================================================================

class FilterOptionsExtractor:
    """
    Extract filter options from loaded case-product lines.

    Usage:
        extractor = FilterOptionsExtractor(case_products, products)

        options = extractor.extract_dual_row_options()
        company_row = options.company
        competitor_row = options.competitor
    """

    def __init__(self, lines: LinesInput, catalog: Union[pd.DataFrame, Iterable[Any], None] = None):
        """
        Initialize with loaded data.

        Args:
            lines: Case-product lines (raw collection or a CaseProductIndex)
            catalog: Product catalog (id, name, is_company_product, ...)
        """
        self._lines = prepare_lines(lines)
        self._catalog = prepare_catalog(catalog)

        logger.info(
            f"FilterOptionsExtractor initialized: {len(self._lines):,} lines, "
            f"{len(self._catalog):,} catalog products"
        )

    # =========================================================================
    # PER-ROW OPTIONS
    # =========================================================================

    def extract_row_options(self, row: str) -> OptionSet:
        """
        Option lists for one filter row.

        Products come from the row's lines first (key = product id if
        present else name, first occurrence wins), then catalog products of
        the same side that were never used on a case.
        """
        lines = partition_lines(self._lines, row)
        is_company = row == COMPANY_ROW

        seen: Set[str] = set()
        product_options = product_options_from_lines(lines, seen)
        side_catalog = self._catalog[self._catalog['is_company_product'] == is_company]
        product_options.extend(catalog_product_options(side_catalog, seen))

        return OptionSet(
            companies=distinct_sorted(lines['company_name']),
            categories=distinct_sorted(lines['category']),
            sub_categories=distinct_sorted(lines['sub_category']),
            product_options=product_options,
        )

    def extract_dual_row_options(self) -> DualRowOptions:
        start_time = time.perf_counter()

        result = DualRowOptions(
            company=self.extract_row_options(COMPANY_ROW),
            competitor=self.extract_row_options(COMPETITOR_ROW),
        )

        if config.debug_timing:
            elapsed = time.perf_counter() - start_time
            logger.debug(f"   📊 [extract_dual_row_options] in {elapsed:.3f}s")

        return result

    # =========================================================================
    # SINGLE-ROW OPTIONS
    # =========================================================================

    def extract_case_filter_options(self) -> OptionSet:
        """
        Option lists over all lines regardless of side.

        Catalog products are only used when no line yields a product.
        """
        seen: Set[str] = set()
        product_options = product_options_from_lines(self._lines, seen)
        if not product_options:
            product_options = catalog_product_options(self._catalog, seen)

        return OptionSet(
            companies=distinct_sorted(self._lines['company_name']),
            categories=distinct_sorted(self._lines['category']),
            sub_categories=distinct_sorted(self._lines['sub_category']),
            product_options=product_options,
        )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def collect_dual_row_options(
    lines: LinesInput,
    catalog: Union[pd.DataFrame, Iterable[Any], None] = None
) -> DualRowOptions:
    """
    Convenience function to extract both rows' options.

    Args:
        lines: Case-product lines
        catalog: Product catalog used to complete product lists

    Returns:
        DualRowOptions with `company` and `competitor` OptionSets
    """
    return FilterOptionsExtractor(lines, catalog).extract_dual_row_options()


def collect_case_filter_options(
    lines: LinesInput,
    catalog: Union[pd.DataFrame, Iterable[Any], None] = None
) -> OptionSet:
    return FilterOptionsExtractor(lines, catalog).extract_case_filter_options()


__all__ = [
    'FilterOptionsExtractor',
    'collect_dual_row_options',
    'collect_case_filter_options',
    'partition_lines',
    'distinct_sorted',
    'product_options_from_lines',
]
