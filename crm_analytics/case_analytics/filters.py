# crm_analytics/case_analytics/filters.py
"""
Dual-Row Filter Logic for Case Analytics

Pure filter logic behind the two filter rows (company products and
competitor products):
- Cascading option resolution (company → category → sub-category → product)
- Row membership predicates per case
- Case list filtering for tables and exports

Selections are FilterSelection values passed in by the caller; nothing
here reads widget state.

CHANGELOG:
- v1.2.0: Cascade narrows within the row's own partition only
- v1.1.0: RowPredicates exposes matched lines for line-level unit sums
- v1.0.0: Initial implementation
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from .constants import ROWS, COMPANY_ROW, COMPETITOR_ROW, CASE_MATCH_MODES
from .indexer import CaseProductIndex, prepare_lines
from .models import (
    FilterSelection, OptionSet, DualRowOptions,
    case_identifier, prepare_cases, validate_row,
)
from .options_extractor import (
    FilterOptionsExtractor, partition_lines, distinct_sorted, product_options_from_lines,
)

logger = logging.getLogger(__name__)

SelectionInput = Union[FilterSelection, Dict[str, Any], None]


def as_selection(selection: SelectionInput) -> FilterSelection:
    if isinstance(selection, FilterSelection):
        return selection
    return FilterSelection.from_dict(selection)


def selection_mask(lines: pd.DataFrame, selection: FilterSelection, include_product: bool = True) -> pd.Series:
    """
    Lines satisfying every set field of `selection`.

    company/category/sub_category are exact string matches; product matches
    the product key (id) or the product name.
    """
    mask = pd.Series(True, index=lines.index, dtype=bool)
    if selection.company is not None:
        mask &= lines['company_name'] == selection.company
    if selection.category is not None:
        mask &= lines['category'] == selection.category
    if selection.sub_category is not None:
        mask &= lines['sub_category'] == selection.sub_category
    if include_product and selection.product is not None:
        mask &= (lines['product_key'] == selection.product) | (lines['product_name'] == selection.product)
    return mask


# =============================================================================
# CASCADING RESOLVER
# =============================================================================

class CascadeResolver:
    """
    Recompute dependent option lists for one filter row.

    Usage:
        resolver = CascadeResolver(case_products, full_options)

        selection = selection.with_field('company', 'Acme')  # clears lower fields
        options = resolver.resolve('company', selection)
    """

    def __init__(self, lines, full_options: Optional[DualRowOptions] = None):
        """
        Args:
            lines: Case-product lines (raw collection or CaseProductIndex)
            full_options: Unfiltered options per row; derived from `lines`
                          when not given
        """
        prepared = prepare_lines(lines)
        self._partitions = {row: partition_lines(prepared, row) for row in ROWS}
        if full_options is None:
            full_options = FilterOptionsExtractor(prepared).extract_dual_row_options()
        self._full_options = full_options

    def resolve(self, row: str, selection: SelectionInput) -> OptionSet:
        """
        Option lists for `row` given its current selection.

        Each level narrows by the fields set above it; a level with nothing
        set above it keeps the row's full list. The company list never
        narrows.
        """
        validate_row(row)
        selection = as_selection(selection)
        lines = self._partitions[row]
        full = self._full_options.for_row(row)

        company_only = FilterSelection(company=selection.company)
        if selection.company is not None:
            categories = distinct_sorted(lines.loc[selection_mask(lines, company_only), 'category'])
        else:
            categories = list(full.categories)

        upper = FilterSelection(company=selection.company, category=selection.category)
        if not upper.is_empty:
            sub_categories = distinct_sorted(lines.loc[selection_mask(lines, upper), 'sub_category'])
        else:
            sub_categories = list(full.sub_categories)

        if selection.company is None and selection.category is None and selection.sub_category is None:
            product_options = list(full.product_options)
        else:
            matched = lines[selection_mask(lines, selection, include_product=False)]
            product_options = sorted(product_options_from_lines(matched), key=lambda option: option.label)

        return OptionSet(
            companies=list(full.companies),
            categories=categories,
            sub_categories=sub_categories,
            product_options=product_options,
        )


def update_cascade(
    row: str,
    selection: SelectionInput,
    lines,
    full_options: Union[DualRowOptions, OptionSet, None] = None
) -> OptionSet:
    """
    Functional form of CascadeResolver.resolve().

    Args:
        row: 'company' or 'competitor'
        selection: Current selection of that row
        lines: Case-product lines
        full_options: Unfiltered options, either both rows or the row's own
    """
    validate_row(row)
    if isinstance(full_options, OptionSet):
        other = OptionSet()
        full_options = DualRowOptions(
            company=full_options if row == COMPANY_ROW else other,
            competitor=full_options if row == COMPETITOR_ROW else other,
        )
    return CascadeResolver(lines, full_options).resolve(row, selection)


# =============================================================================
# ROW PREDICATES
# =============================================================================

@dataclass(frozen=True, eq=False)
class RowPredicates:
    """
    Membership tests for both filter rows.

    A case matches a row when it has at least one line on that row's side
    satisfying the row's selection. An empty selection still requires the
    side to be non-empty.
    """
    company_selection: FilterSelection
    competitor_selection: FilterSelection
    company_lines: pd.DataFrame
    competitor_lines: pd.DataFrame
    company_case_ids: frozenset
    competitor_case_ids: frozenset

    def company_matches(self, case: Any) -> bool:
        return case_identifier(case) in self.company_case_ids

    def competitor_matches(self, case: Any) -> bool:
        return case_identifier(case) in self.competitor_case_ids

    def is_mixed(self, case: Any) -> bool:
        return self.company_matches(case) and self.competitor_matches(case)

    @property
    def has_active_filters(self) -> bool:
        return not (self.company_selection.is_empty and self.competitor_selection.is_empty)

    def matching_lines(self, row: str) -> pd.DataFrame:
        validate_row(row)
        return self.company_lines if row == COMPANY_ROW else self.competitor_lines


def build_row_predicates(
    index: CaseProductIndex,
    company_selection: SelectionInput = None,
    competitor_selection: SelectionInput = None
) -> RowPredicates:
    """
    Build membership tests for the company row and the competitor row.

    Args:
        index: Case product index for the current data load
        company_selection: Company-row selection (None = no filter)
        competitor_selection: Competitor-row selection (None = no filter)

    Returns:
        RowPredicates
    """
    company_selection = as_selection(company_selection)
    competitor_selection = as_selection(competitor_selection)

    matched = {}
    for row, selection in ((COMPANY_ROW, company_selection), (COMPETITOR_ROW, competitor_selection)):
        side = partition_lines(index.frame, row)
        matched[row] = side[selection_mask(side, selection)] if not side.empty else side

    return RowPredicates(
        company_selection=company_selection,
        competitor_selection=competitor_selection,
        company_lines=matched[COMPANY_ROW],
        competitor_lines=matched[COMPETITOR_ROW],
        company_case_ids=frozenset(matched[COMPANY_ROW]['case_id']),
        competitor_case_ids=frozenset(matched[COMPETITOR_ROW]['case_id']),
    )


def match_flags(cases: pd.DataFrame, predicates: RowPredicates) -> pd.DataFrame:
    """Per-case company/competitor/mixed flags aligned to `cases`."""
    ids = cases['id']
    company = ids.isin(list(predicates.company_case_ids))
    competitor = ids.isin(list(predicates.competitor_case_ids))
    return pd.DataFrame({
        'company': company,
        'competitor': competitor,
        'mixed': company & competitor,
    }, index=cases.index)


def filter_cases(
    cases: Union[pd.DataFrame, Iterable[Any], None],
    predicates: RowPredicates,
    mode: str = 'any'
) -> pd.DataFrame:
    """
    Restrict a case list by row membership.

    Args:
        cases: Case records
        predicates: From build_row_predicates()
        mode: 'company', 'competitor', 'mixed' (both) or 'any' (either)

    Returns:
        Matching cases as a DataFrame
    """
    if mode not in CASE_MATCH_MODES:
        raise ValueError(f"Unknown case match mode {mode!r}; expected one of {CASE_MATCH_MODES}")

    frame = prepare_cases(cases)
    if frame.empty:
        return frame

    flags = match_flags(frame, predicates)
    if mode == 'any':
        mask = flags['company'] | flags['competitor']
    else:
        mask = flags[mode]
    return frame[mask].reset_index(drop=True)
