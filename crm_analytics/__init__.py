# crm_analytics/__init__.py
"""
CRM Analytics Package

Analytics for the pharma field-sales CRM:
- config: Configuration management (.env + environment)
- case_analytics: Case aggregation engine (filters, metrics, market share)

Usage:
    from crm_analytics import config, CaseAnalytics, FilterSelection

    analytics = CaseAnalytics(cases, case_products, products)
    metrics = analytics.metrics(FilterSelection(company='Acme'), use_line_level_units=True)
"""

# Configuration
from .config import (
    config,
    Config,
    AnalyticsSettings,
    load_analytics_settings,
)

# Case analytics
from .case_analytics import (
    CaseAnalytics,
    FilterSelection,
    MetricsResult,
    build_case_product_index,
    build_row_predicates,
    compute_metrics,
    rank_market_share,
)

__all__ = [
    # Config
    'config',
    'Config',
    'AnalyticsSettings',
    'load_analytics_settings',

    # Case analytics
    'CaseAnalytics',
    'FilterSelection',
    'MetricsResult',
    'build_case_product_index',
    'build_row_predicates',
    'compute_metrics',
    'rank_market_share',
]

__version__ = '1.0.0'
