# crm_analytics/case_analytics/metrics.py
"""
Case Metrics for Case Analytics

Handles the stat-card metric calculations shared by every screen
(dashboard, cases list, per-rep view):
- Company / competitor / mixed case counts
- Total cases by inclusion-exclusion
- Company and competitor unit sums
- Active doctors / accounts on company cases

Unit sums come from one of two sources, chosen explicitly by the caller:
- use_line_level_units=True: re-sum units of the matching product lines
- use_line_level_units=False: sum the cases' pre-aggregated totals
"""

import logging
from typing import Any, Iterable, Optional, Union

import pandas as pd

from ..config import config, ENTITY_DEDUP_MODES
from .indexer import CaseProductIndex
from .filters import RowPredicates, SelectionInput, build_row_predicates, match_flags
from .models import MetricsResult, prepare_cases, set_mask

logger = logging.getLogger(__name__)

CasesInput = Union[pd.DataFrame, Iterable[Any], None]

ENTITY_COLUMNS = {
    'name': ('doctor_name', 'account_name'),
    'id': ('doctor_id', 'account_id'),
}


def _distinct_count(series: pd.Series) -> int:
    values = series[set_mask(series)]
    return int(values.nunique()) if not values.empty else 0


def _resolve_dedup_mode(dedupe_entities_by: Optional[str]) -> str:
    mode = dedupe_entities_by or config.settings.entity_dedup
    if mode not in ENTITY_DEDUP_MODES:
        raise ValueError(f"Unknown entity dedup mode {mode!r}; expected one of {ENTITY_DEDUP_MODES}")
    return mode


def compute_metrics(
    cases: CasesInput,
    index: CaseProductIndex,
    predicates: Optional[RowPredicates] = None,
    *,
    use_line_level_units: bool,
    dedupe_entities_by: Optional[str] = None
) -> MetricsResult:
    """
    Calculate stat-card metrics for a case list.

    Args:
        cases: Cases to consider
        index: Case product index for the current data load
        predicates: Row predicates; unfiltered predicates when None
        use_line_level_units: Sum units from matching lines (True) or from
                              the cases' pre-aggregated totals (False)
        dedupe_entities_by: 'name' or 'id' for active doctors/accounts;
                            defaults to the ENTITY_DEDUP setting

    Returns:
        MetricsResult
    """
    mode = _resolve_dedup_mode(dedupe_entities_by)
    if predicates is None:
        predicates = build_row_predicates(index)

    frame = prepare_cases(cases)
    if frame.empty:
        return MetricsResult()

    flags = match_flags(frame, predicates)
    company_count = int(flags['company'].sum())
    competitor_count = int(flags['competitor'].sum())
    mixed_count = int(flags['mixed'].sum())

    # === Units ===
    if use_line_level_units:
        case_ids = list(frame['id'])
        company_lines = predicates.company_lines
        competitor_lines = predicates.competitor_lines
        company_units = int(company_lines.loc[company_lines['case_id'].isin(case_ids), 'units'].sum())
        competitor_units = int(competitor_lines.loc[competitor_lines['case_id'].isin(case_ids), 'units'].sum())
    else:
        if predicates.has_active_filters:
            logger.warning(
                "Pre-aggregated case unit totals used with active row filters; "
                "unit sums ignore the filters while case counts honour them"
            )
        company_units = int(frame['total_company_units'].sum())
        competitor_units = int(frame['total_competitor_units'].sum())

    # === Active entities (company cases only) ===
    doctor_col, account_col = ENTITY_COLUMNS[mode]
    company_cases = frame[flags['company']]

    return MetricsResult(
        company_case_count=company_count,
        competitor_case_count=competitor_count,
        mixed_case_count=mixed_count,
        total_case_count=max(company_count + competitor_count - mixed_count, 0),
        company_units=company_units,
        competitor_units=competitor_units,
        active_doctors=_distinct_count(company_cases[doctor_col]),
        active_accounts=_distinct_count(company_cases[account_col]),
    )


class CaseMetrics:
    """
    Metric calculations for one case list and index snapshot.

    Usage:
        metrics = CaseMetrics(cases, index)

        overview = metrics.calculate_overview()
        filtered = metrics.calculate(company_sel, competitor_sel, use_line_level_units=True)
    """

    def __init__(self, cases: CasesInput, index: CaseProductIndex):
        self.cases = prepare_cases(cases)
        self.index = index

    def calculate(
        self,
        company_selection: SelectionInput = None,
        competitor_selection: SelectionInput = None,
        *,
        use_line_level_units: bool,
        dedupe_entities_by: Optional[str] = None
    ) -> MetricsResult:
        predicates = build_row_predicates(self.index, company_selection, competitor_selection)
        return compute_metrics(
            self.cases, self.index, predicates,
            use_line_level_units=use_line_level_units,
            dedupe_entities_by=dedupe_entities_by,
        )

    def calculate_overview(self) -> MetricsResult:
        """Unfiltered metrics using the pre-aggregated case totals."""
        return self.calculate(use_line_level_units=False)
