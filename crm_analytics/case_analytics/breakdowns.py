# crm_analytics/case_analytics/breakdowns.py
"""
Dashboard Breakdowns for Case Analytics

Secondary aggregations behind the dashboard charts:
- Monthly case and unit trends (company vs competitor)
- Cases per account type
- Units per category / product, cases per product
- Cases and units per product specialist
- Units per company stacked by sub-category

Monthly trends use the same row predicates as the stat cards, so the
chart totals line up with the metric cards for the same filter state.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from ..config import config
from .constants import (
    ACCOUNT_TYPES, COMPANY_LABEL, OTHER_COMPANIES_LABEL, OTHER_COMPANIES_COLOR,
    STACKED_PALETTE, UNCATEGORIZED_LABEL, UNKNOWN_LABEL, UNKNOWN_MONTH_LABEL,
)
from .filters import RowPredicates, build_row_predicates, match_flags
from .indexer import CaseProductIndex, prepare_lines
from .models import ChartSeries, prepare_cases, set_mask

logger = logging.getLogger(__name__)

CasesInput = Union[pd.DataFrame, Iterable[Any], None]


# =============================================================================
# HELPERS
# =============================================================================

def _fill_unset(series: pd.Series, default: str) -> pd.Series:
    return series.where(set_mask(series), default).astype(str)


def _top_series(totals: pd.Series, top_n: Optional[int] = None) -> ChartSeries:
    """Sort descending (ties by label) and keep the first `top_n`."""
    if totals.empty:
        return ChartSeries()
    ranked = totals.sort_index().sort_values(ascending=False, kind='stable')
    if top_n is not None:
        ranked = ranked.iloc[:top_n]
    return ChartSeries(
        labels=[str(label) for label in ranked.index],
        data=[int(value) for value in ranked.values],
    )


def _month_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Adds month_start (Timestamp or NaT) for each case.

    Dates may mix plain dates, naive datetimes and datetimes with different
    UTC offsets; offset-aware values are bucketed by their UTC month.
    """
    frame = frame.copy()
    dates = pd.to_datetime(frame['case_date'], errors='coerce', utc=True, format='mixed')
    dates = dates.dt.tz_convert(None)
    frame['month_start'] = dates.dt.to_period('M').dt.to_timestamp()
    return frame


def _group_by_month(frame: pd.DataFrame, value_columns: List[str]) -> pd.DataFrame:
    """
    Sum `value_columns` per calendar month, chronologically.

    Undated cases land in a trailing "Unknown" bucket.
    """
    columns = ['month'] + value_columns
    if frame.empty:
        return pd.DataFrame(columns=columns)

    rows = []
    dated = frame[frame['month_start'].notna()]
    if not dated.empty:
        grouped = dated.groupby('month_start')[value_columns].sum().sort_index()
        for month_start, values in grouped.iterrows():
            row = {'month': month_start.strftime('%b %Y')}
            row.update({col: values[col] for col in value_columns})
            rows.append(row)

    undated = frame[frame['month_start'].isna()]
    if not undated.empty:
        row = {'month': UNKNOWN_MONTH_LABEL}
        row.update({col: undated[col].sum() for col in value_columns})
        rows.append(row)

    monthly = pd.DataFrame(rows, columns=columns)

    for col in value_columns:
        monthly[col] = monthly[col].astype('int64')
    return monthly.reset_index(drop=True)


# =============================================================================
# MONTHLY TRENDS
# =============================================================================

def aggregate_cases_by_month(
    cases: CasesInput,
    index: CaseProductIndex,
    predicates: Optional[RowPredicates] = None
) -> pd.DataFrame:
    """
    Company and competitor case counts per month.

    A case counts for the company series when it matches the company row,
    and for the competitor series when it matches the competitor row
    (mixed cases count in both).

    Returns:
        DataFrame with columns: month, company_cases, competitor_cases
    """
    if predicates is None:
        predicates = build_row_predicates(index)

    frame = prepare_cases(cases)
    if frame.empty:
        return pd.DataFrame(columns=['month', 'company_cases', 'competitor_cases'])

    flags = match_flags(frame, predicates)
    frame = _month_frame(frame)
    frame['company_cases'] = flags['company'].astype('int64')
    frame['competitor_cases'] = flags['competitor'].astype('int64')
    return _group_by_month(frame, ['company_cases', 'competitor_cases'])


def aggregate_units_by_month(
    cases: CasesInput,
    index: Optional[CaseProductIndex] = None,
    predicates: Optional[RowPredicates] = None,
    *,
    use_line_level_units: bool
) -> pd.DataFrame:
    """
    Company and competitor units per month.

    Args:
        cases: Cases to consider
        index: Required when use_line_level_units is True
        predicates: Row predicates for line-level sums (unfiltered if None)
        use_line_level_units: Same contract as compute_metrics()

    Returns:
        DataFrame with columns: month, company_units, competitor_units
    """
    frame = prepare_cases(cases)
    if frame.empty:
        return pd.DataFrame(columns=['month', 'company_units', 'competitor_units'])

    frame = _month_frame(frame)
    if use_line_level_units:
        if predicates is None:
            if index is None:
                raise ValueError("Line-level unit sums need an index or row predicates")
            predicates = build_row_predicates(index)
        company = predicates.company_lines.groupby('case_id')['units'].sum()
        competitor = predicates.competitor_lines.groupby('case_id')['units'].sum()
        frame['company_units'] = frame['id'].map(company).fillna(0)
        frame['competitor_units'] = frame['id'].map(competitor).fillna(0)
    else:
        frame['company_units'] = frame['total_company_units']
        frame['competitor_units'] = frame['total_competitor_units']

    return _group_by_month(frame, ['company_units', 'competitor_units'])


# =============================================================================
# CASE-LEVEL BREAKDOWNS
# =============================================================================

def cases_by_account_type(cases: CasesInput) -> ChartSeries:
    """Cases per account type (Private / UPA / Military)."""
    frame = prepare_cases(cases)
    counts = frame['account_type'].value_counts() if not frame.empty else pd.Series(dtype='int64')
    return ChartSeries(
        labels=[f"{account_type} Cases" for account_type in ACCOUNT_TYPES],
        data=[int(counts.get(account_type, 0)) for account_type in ACCOUNT_TYPES],
    )


def cases_by_specialist(cases: CasesInput) -> ChartSeries:
    frame = prepare_cases(cases)
    if frame.empty:
        return ChartSeries()
    names = _fill_unset(frame['submitted_by_name'], UNKNOWN_LABEL)
    return _top_series(names.value_counts())


def units_by_specialist(cases: CasesInput) -> ChartSeries:
    """Company plus competitor units per specialist, from case totals."""
    frame = prepare_cases(cases)
    if frame.empty:
        return ChartSeries()
    names = _fill_unset(frame['submitted_by_name'], UNKNOWN_LABEL)
    units = frame['total_company_units'] + frame['total_competitor_units']
    return _top_series(units.groupby(names).sum())


def cases_by_product(
    cases: CasesInput,
    index: CaseProductIndex,
    top_n: Optional[int] = None
) -> ChartSeries:
    """Cases per product name, counting each product once per case."""
    top_n = top_n or config.settings.breakdown_top_n
    frame = prepare_cases(cases)
    if frame.empty:
        return ChartSeries()
    lines = index.lines_for(frame['id'])
    if lines.empty:
        return ChartSeries()
    names = _fill_unset(lines['product_name'], UNKNOWN_LABEL)
    pairs = pd.DataFrame({'case_id': lines['case_id'], 'product': names}).drop_duplicates()
    return _top_series(pairs.groupby('product').size(), top_n)


# =============================================================================
# LINE-LEVEL BREAKDOWNS
# =============================================================================

def units_per_category(lines, top_n: Optional[int] = None) -> ChartSeries:
    top_n = top_n or config.settings.breakdown_top_n
    frame = prepare_lines(lines)
    if frame.empty:
        return ChartSeries()
    categories = _fill_unset(frame['category'], UNCATEGORIZED_LABEL)
    return _top_series(frame['units'].groupby(categories).sum(), top_n)


def units_by_product(lines, top_n: Optional[int] = None) -> ChartSeries:
    top_n = top_n or config.settings.breakdown_top_n
    frame = prepare_lines(lines)
    if frame.empty:
        return ChartSeries()
    names = _fill_unset(frame['product_name'], UNKNOWN_LABEL)
    return _top_series(frame['units'].groupby(names).sum(), top_n)


# =============================================================================
# STACKED UNITS PER COMPANY
# =============================================================================

def truncate_sub_category_label(label: Any) -> Any:
    """
    Shorten labels of three or more words to "FirstWord...LastWord".

    Example: "short self expanding stents" -> "short...stents"
    """
    if not isinstance(label, str) or not label:
        return label
    words = label.split()
    if len(words) <= 2:
        return label
    return f"{words[0]}...{words[-1]}"


def units_per_company_stacked(
    cases: CasesInput,
    index: CaseProductIndex,
    top_n: Optional[int] = None
) -> Dict[str, Any]:
    """
    Units per company, stacked by sub-category (falling back to category).

    Returns:
        Dict with:
        - labels: truncated sub-category labels for display
        - full_labels: untruncated labels for tooltips
        - datasets: [{label, data, background_color}] for the top companies
          by total units, plus "Other Companies" when any remainder is positive
    """
    top_n = top_n or config.settings.breakdown_top_n
    empty = {'labels': [], 'full_labels': [], 'datasets': []}

    frame = prepare_cases(cases)
    if frame.empty:
        return empty
    lines = index.lines_for(frame['id'])
    if lines.empty:
        return empty

    bucket = lines['sub_category'].where(set_mask(lines['sub_category']), lines['category'])
    bucket = _fill_unset(bucket, UNCATEGORIZED_LABEL)

    fallback_company = lines['is_company_product'].map({True: COMPANY_LABEL, False: UNKNOWN_LABEL})
    company = lines['company_name'].where(set_mask(lines['company_name']), fallback_company).astype(str)

    pivot = lines['units'].groupby([bucket, company]).sum().unstack(fill_value=0)
    pivot = pivot.sort_index()

    totals = pivot.sum(axis=0)
    top_companies = list(totals.sort_index().sort_values(ascending=False, kind='stable').index[:top_n])

    datasets = []
    for idx, name in enumerate(top_companies):
        datasets.append({
            'label': str(name),
            'data': [int(value) for value in pivot[name].values],
            'background_color': STACKED_PALETTE[idx % len(STACKED_PALETTE)],
        })

    rest = [name for name in pivot.columns if name not in top_companies]
    other = pivot[rest].sum(axis=1) if rest else pd.Series(0, index=pivot.index)
    if (other > 0).any():
        datasets.append({
            'label': OTHER_COMPANIES_LABEL,
            'data': [int(value) for value in other.values],
            'background_color': OTHER_COMPANIES_COLOR,
        })

    full_labels = [str(label) for label in pivot.index]
    return {
        'labels': [truncate_sub_category_label(label) for label in full_labels],
        'full_labels': full_labels,
        'datasets': datasets,
    }
