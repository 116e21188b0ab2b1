# crm_analytics/case_analytics/market_share.py
"""
Market Share Ranking

Ranks competitor companies against the organization by case count or by
unit volume. The organization is always the first bucket, followed by the
top N competitors and an "Other Companies" remainder when it is positive.

Unit attribution:
- 'line' (default): every bucket is summed from product lines; the
  organization gets its company lines, each competitor company its own lines
- 'case_total': the organization gets the cases' total_company_units and
  each competitor company named on a case gets the case's full
  total_competitor_units (legacy behaviour; double-counts cases that name
  several competitors)
"""

import logging
from typing import Any, Iterable, Optional, Union

import pandas as pd

from ..config import config
from .constants import (
    COMPANY_LABEL, OTHER_COMPANIES_LABEL, MARKET_SHARE_METRICS, UNIT_ATTRIBUTIONS,
)
from .indexer import CaseProductIndex
from .models import ChartSeries, prepare_cases, set_mask

logger = logging.getLogger(__name__)


def rank_buckets(
    totals: pd.Series,
    top_n: int,
    lead_label: Optional[str] = None,
    lead_value: float = 0
) -> ChartSeries:
    """
    Top `top_n` buckets by value plus an "Other Companies" remainder.

    Ties are ordered by label ascending.

    Args:
        totals: Series of label -> value
        top_n: Number of buckets to keep
        lead_label: Optional fixed first bucket (e.g. the organization)
        lead_value: Value of the fixed first bucket
    """
    labels = [lead_label] if lead_label is not None else []
    data = [lead_value] if lead_label is not None else []

    if totals.empty:
        return ChartSeries(labels=labels, data=data)

    ranked = totals.sort_index().sort_values(ascending=False, kind='stable')
    top = ranked.iloc[:top_n]

    labels.extend(str(name) for name in top.index)
    data.extend(int(value) for value in top.values)

    other = int(ranked.sum()) - int(top.sum())
    if other > 0:
        labels.append(OTHER_COMPANIES_LABEL)
        data.append(other)

    return ChartSeries(labels=labels, data=data)


def rank_market_share(
    cases: Union[pd.DataFrame, Iterable[Any], None],
    index: CaseProductIndex,
    metric: str = 'count',
    *,
    top_n: Optional[int] = None,
    unit_attribution: Optional[str] = None
) -> ChartSeries:
    """
    Market share of the organization vs competitor companies.

    Args:
        cases: Cases to consider (already filtered by the caller)
        index: Case product index
        metric: 'count' (cases per company, once per case) or 'units'
        top_n: Competitors to keep; defaults to MARKET_SHARE_TOP_N
        unit_attribution: 'line' (default) or 'case_total'

    Returns:
        ChartSeries whose first bucket is "Company"
    """
    if metric not in MARKET_SHARE_METRICS:
        raise ValueError(f"Unknown market share metric {metric!r}; expected one of {MARKET_SHARE_METRICS}")
    attribution = unit_attribution or 'line'
    if attribution not in UNIT_ATTRIBUTIONS:
        raise ValueError(f"Unknown unit attribution {attribution!r}; expected one of {UNIT_ATTRIBUTIONS}")
    if top_n is None:
        top_n = config.settings.market_share_top_n

    frame = prepare_cases(cases)
    if frame.empty:
        return ChartSeries(labels=[COMPANY_LABEL], data=[0])

    lines = index.lines_for(frame['id'])
    company_lines = lines[lines['is_company_product']]
    competitor_lines = lines[~lines['is_company_product']]
    competitor_lines = competitor_lines[set_mask(competitor_lines['company_name'])]

    # One (case, company) pair per case, however many lines name it
    pairs = competitor_lines.drop_duplicates(['case_id', 'company_name'])

    if metric == 'count':
        lead_value = int(company_lines['case_id'].nunique())
        totals = pairs.groupby('company_name').size()
    elif attribution == 'line':
        lead_value = int(company_lines['units'].sum())
        totals = competitor_lines.groupby('company_name')['units'].sum()
    else:
        lead_value = int(frame['total_company_units'].sum())
        case_totals = frame.drop_duplicates('id').set_index('id')['total_competitor_units']
        contributions = pairs['case_id'].map(case_totals).fillna(0)
        totals = contributions.groupby(pairs['company_name']).sum()

    result = rank_buckets(totals, top_n, lead_label=COMPANY_LABEL, lead_value=lead_value)
    logger.debug(f"Market share ({metric}/{attribution}): {len(totals)} competitor companies")
    return result
