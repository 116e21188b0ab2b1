# crm_analytics/case_analytics/analytics.py
"""
Case Analytics Facade

One shared entry point for every screen that shows case analytics
(dashboard, cases list, per-rep view). Each screen passes its own pair of
FilterSelections and renders what comes back.

A CaseAnalytics instance is an immutable snapshot of one data load: the
case-product index is built once in the constructor. After cases are
created, edited or deleted, call rebuild() to get a fresh snapshot instead
of mutating this one.

Usage:
    analytics = CaseAnalytics(cases, case_products, products)

    options = analytics.filter_options
    company_options = analytics.cascade('company', FilterSelection(company='Acme'))

    metrics = analytics.metrics(company_sel, competitor_sel, use_line_level_units=True)
    share = analytics.market_share('units')
"""

import logging
import time
from functools import cached_property
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from ..config import config
from .breakdowns import aggregate_cases_by_month, aggregate_units_by_month
from .export import build_case_table_rows
from .filters import (
    CascadeResolver, RowPredicates, SelectionInput, build_row_predicates, filter_cases,
)
from .indexer import CaseProductIndex, build_case_product_index
from .market_share import rank_market_share
from .metrics import compute_metrics
from .models import ChartSeries, DualRowOptions, MetricsResult, OptionSet, prepare_cases
from .options_extractor import FilterOptionsExtractor, prepare_catalog

logger = logging.getLogger(__name__)

Collection = Union[pd.DataFrame, Iterable[Any], None]


class CaseAnalytics:
    """Immutable analytics snapshot over one set of cases and product lines."""

    def __init__(
        self,
        cases: Collection,
        case_products: Collection,
        catalog: Collection = None
    ):
        """
        Args:
            cases: Case records visible to the current user
            case_products: Product lines of those cases
            catalog: Product catalog used to complete product options
        """
        start_time = time.perf_counter()

        self._cases = prepare_cases(cases)
        self._index = build_case_product_index(case_products)
        self._catalog = prepare_catalog(catalog)

        logger.info(
            f"CaseAnalytics snapshot: {len(self._cases):,} cases, "
            f"{len(self._index.frame):,} product lines"
        )
        if config.debug_timing:
            elapsed = time.perf_counter() - start_time
            logger.debug(f"   📊 [CaseAnalytics.__init__] in {elapsed:.3f}s")

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    @property
    def cases(self) -> pd.DataFrame:
        return self._cases

    @property
    def index(self) -> CaseProductIndex:
        return self._index

    @property
    def catalog(self) -> pd.DataFrame:
        return self._catalog

    def rebuild(
        self,
        cases: Collection = None,
        case_products: Collection = None,
        catalog: Collection = None
    ) -> 'CaseAnalytics':
        """New snapshot; collections not given are carried over."""
        return CaseAnalytics(
            self._cases if cases is None else cases,
            self._index.frame if case_products is None else case_products,
            self._catalog if catalog is None else catalog,
        )

    def scoped_to_employee(self, employee_id: Any) -> 'CaseAnalytics':
        """Snapshot limited to cases submitted by one rep."""
        own_cases = self._cases[self._cases['submitted_by'] == employee_id]
        own_lines = self._index.lines_for(own_cases['id'])
        return CaseAnalytics(own_cases, own_lines, self._catalog)

    # =========================================================================
    # FILTER OPTIONS
    # =========================================================================

    @cached_property
    def filter_options(self) -> DualRowOptions:
        return FilterOptionsExtractor(self._index, self._catalog).extract_dual_row_options()

    @cached_property
    def _cascade_resolver(self) -> CascadeResolver:
        return CascadeResolver(self._index, self.filter_options)

    def cascade(self, row: str, selection: SelectionInput) -> OptionSet:
        """Option lists for `row` after a selection change."""
        return self._cascade_resolver.resolve(row, selection)

    # =========================================================================
    # PREDICATES / METRICS
    # =========================================================================

    def predicates(
        self,
        company_selection: SelectionInput = None,
        competitor_selection: SelectionInput = None
    ) -> RowPredicates:
        return build_row_predicates(self._index, company_selection, competitor_selection)

    def metrics(
        self,
        company_selection: SelectionInput = None,
        competitor_selection: SelectionInput = None,
        *,
        use_line_level_units: bool,
        dedupe_entities_by: Optional[str] = None
    ) -> MetricsResult:
        return compute_metrics(
            self._cases,
            self._index,
            self.predicates(company_selection, competitor_selection),
            use_line_level_units=use_line_level_units,
            dedupe_entities_by=dedupe_entities_by,
        )

    def matching_cases(
        self,
        company_selection: SelectionInput = None,
        competitor_selection: SelectionInput = None,
        mode: str = 'any'
    ) -> pd.DataFrame:
        """Cases matching the filter rows, for tables and exports."""
        return filter_cases(self._cases, self.predicates(company_selection, competitor_selection), mode)

    # =========================================================================
    # CHART DATA
    # =========================================================================

    def market_share(
        self,
        metric: str = 'count',
        *,
        top_n: Optional[int] = None,
        unit_attribution: Optional[str] = None
    ) -> ChartSeries:
        return rank_market_share(
            self._cases, self._index, metric,
            top_n=top_n, unit_attribution=unit_attribution,
        )

    def monthly_cases(
        self,
        company_selection: SelectionInput = None,
        competitor_selection: SelectionInput = None
    ) -> pd.DataFrame:
        predicates = self.predicates(company_selection, competitor_selection)
        return aggregate_cases_by_month(self._cases, self._index, predicates)

    def monthly_units(
        self,
        company_selection: SelectionInput = None,
        competitor_selection: SelectionInput = None,
        *,
        use_line_level_units: bool
    ) -> pd.DataFrame:
        predicates = self.predicates(company_selection, competitor_selection)
        return aggregate_units_by_month(
            self._cases, self._index, predicates,
            use_line_level_units=use_line_level_units,
        )

    def table_rows(self, cases: Collection = None) -> pd.DataFrame:
        """Wide case table rows; defaults to every case in the snapshot."""
        return build_case_table_rows(self._cases if cases is None else cases, self._index)

    def summary(self) -> Dict[str, Any]:
        """Unfiltered stat-card metrics as a dict."""
        return self.metrics(use_line_level_units=False).to_dict()
