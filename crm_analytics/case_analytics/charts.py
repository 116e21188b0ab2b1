# crm_analytics/case_analytics/charts.py
"""
Altair Chart Builders for Case Analytics

Turns engine outputs into Altair chart specifications:
- Market share donut (cases or units)
- Monthly company vs competitor trend (grouped bars)
- Units per company stacked by sub-category

Charts are returned, not displayed; the caller embeds them.
"""

import logging
from typing import Any, Dict

import pandas as pd
import altair as alt

from .constants import (
    COLORS, COMPANY_LABEL, OTHER_COMPANIES_LABEL, STACKED_PALETTE,
    CHART_WIDTH, CHART_HEIGHT, PIE_CHART_WIDTH, PIE_CHART_HEIGHT,
)
from .models import ChartSeries

logger = logging.getLogger(__name__)


class CaseCharts:
    """
    Chart builders for the case analytics dashboard.

    All methods are static - can be called without instantiation.

    Usage:
        share = rank_market_share(cases, index, 'count')
        chart = CaseCharts.build_market_share_chart(share, value_title='Cases')
    """

    # =========================================================================
    # MARKET SHARE
    # =========================================================================

    @staticmethod
    def build_market_share_chart(
        series: ChartSeries,
        value_title: str = 'Cases',
        title: str = "Market Share"
    ) -> alt.Chart:
        """
        Donut chart of a market-share series.

        The organization keeps its brand color, "Other Companies" is gray,
        competitors cycle through the stacked palette.
        """
        if not series.labels or series.total <= 0:
            return CaseCharts._empty_chart("No data available")

        data = series.to_frame('value')
        data['share'] = data['value'] / data['value'].sum()

        domain = list(data['label'])
        range_colors = []
        competitor_idx = 0
        for label in domain:
            if label == COMPANY_LABEL:
                range_colors.append(COLORS['company'])
            elif label == OTHER_COMPANIES_LABEL:
                range_colors.append(COLORS['other'])
            else:
                range_colors.append(STACKED_PALETTE[competitor_idx % len(STACKED_PALETTE)])
                competitor_idx += 1
        color_scale = alt.Scale(domain=domain, range=range_colors)

        return alt.Chart(data).mark_arc(innerRadius=60).encode(
            theta=alt.Theta('value:Q'),
            color=alt.Color(
                'label:N',
                scale=color_scale,
                sort=domain,
                legend=alt.Legend(title='Company', orient='right')
            ),
            tooltip=[
                alt.Tooltip('label:N', title='Company'),
                alt.Tooltip('value:Q', title=value_title, format=',.0f'),
                alt.Tooltip('share:Q', title='Share', format='.1%'),
            ]
        ).properties(
            width=PIE_CHART_WIDTH,
            height=PIE_CHART_HEIGHT,
            title=title
        )

    # =========================================================================
    # MONTHLY TREND
    # =========================================================================

    @staticmethod
    def build_monthly_trend_chart(
        monthly_df: pd.DataFrame,
        company_column: str = 'company_cases',
        competitor_column: str = 'competitor_cases',
        value_title: str = 'Cases',
        title: str = "📊 Monthly Company vs Competitor"
    ) -> alt.Chart:
        """
        Grouped bar chart from aggregate_cases_by_month() or
        aggregate_units_by_month() output.
        """
        if monthly_df.empty:
            return CaseCharts._empty_chart("No data available")

        month_order = list(monthly_df['month'])
        bar_data = monthly_df.melt(
            id_vars=['month'],
            value_vars=[company_column, competitor_column],
            var_name='Series',
            value_name='Value'
        )
        bar_data['Series'] = bar_data['Series'].map({
            company_column: 'Company',
            competitor_column: 'Competitor',
        })

        color_scale = alt.Scale(
            domain=['Company', 'Competitor'],
            range=[COLORS['company'], COLORS['competitor']]
        )

        return alt.Chart(bar_data).mark_bar().encode(
            x=alt.X('month:N', sort=month_order, title='Month'),
            y=alt.Y('Value:Q', title=value_title),
            color=alt.Color('Series:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset='Series:N',
            tooltip=[
                alt.Tooltip('month:N', title='Month'),
                alt.Tooltip('Series:N', title='Series'),
                alt.Tooltip('Value:Q', title=value_title, format=',.0f')
            ]
        ).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title=title
        )

    # =========================================================================
    # STACKED UNITS
    # =========================================================================

    @staticmethod
    def build_stacked_units_chart(
        stacked: Dict[str, Any],
        title: str = "Units per Company by Sub-category"
    ) -> alt.Chart:
        """Stacked bars from units_per_company_stacked() output."""
        datasets = stacked.get('datasets') or []
        if not datasets:
            return CaseCharts._empty_chart("No data available")

        records = []
        for dataset in datasets:
            for label, full_label, value in zip(stacked['labels'], stacked['full_labels'], dataset['data']):
                records.append({
                    'sub_category': label,
                    'full_label': full_label,
                    'company': dataset['label'],
                    'units': value,
                })
        data = pd.DataFrame(records)

        companies = [dataset['label'] for dataset in datasets]
        colors = [dataset['background_color'] for dataset in datasets]

        return alt.Chart(data).mark_bar().encode(
            x=alt.X('sub_category:N', sort=list(stacked['labels']), title='Sub-category'),
            y=alt.Y('sum(units):Q', title='Units'),
            color=alt.Color(
                'company:N',
                scale=alt.Scale(domain=companies, range=colors),
                legend=alt.Legend(title='Company', orient='right')
            ),
            tooltip=[
                alt.Tooltip('full_label:N', title='Sub-category'),
                alt.Tooltip('company:N', title='Company'),
                alt.Tooltip('units:Q', title='Units', format=',.0f')
            ]
        ).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title=title
        )

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_light']
        ).properties(
            width=CHART_WIDTH,
            height=200
        )
