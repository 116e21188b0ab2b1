# crm_analytics/case_analytics/__init__.py
"""
Case Analytics Module

Pure aggregation engine behind every case analytics screen.
All components are side-effect free functions over in-memory collections.

Components:
- indexer: Group case-product lines by case (CaseProductIndex)
- options_extractor: Dual-row filter option lists
- filters: Cascading option resolution and row predicates
- metrics: Case counts, unit sums, active doctors/accounts
- market_share: Company vs top competitors ranking
- breakdowns: Monthly trends and secondary dashboard aggregations
- export: Wide case table / export rows
- charts: Altair chart specifications
- analytics: CaseAnalytics facade (one snapshot per data load)

Usage:
    from crm_analytics.case_analytics import (
        CaseAnalytics,
        FilterSelection,
        build_case_product_index,
        build_row_predicates,
        compute_metrics,
        rank_market_share,
    )
"""

from .models import (
    CaseRecord,
    CaseProductLine,
    Product,
    FilterSelection,
    ProductOption,
    OptionSet,
    DualRowOptions,
    MetricsResult,
    ChartSeries,
)
from .indexer import CaseProductIndex, build_case_product_index
from .options_extractor import (
    FilterOptionsExtractor,
    collect_dual_row_options,
    collect_case_filter_options,
)
from .filters import (
    CascadeResolver,
    RowPredicates,
    update_cascade,
    build_row_predicates,
    filter_cases,
)
from .metrics import CaseMetrics, compute_metrics
from .market_share import rank_market_share
from .breakdowns import (
    aggregate_cases_by_month,
    aggregate_units_by_month,
    cases_by_account_type,
    cases_by_specialist,
    units_by_specialist,
    cases_by_product,
    units_per_category,
    units_by_product,
    units_per_company_stacked,
    truncate_sub_category_label,
)
from .export import CASE_EXPORT_HEADERS, build_case_table_rows, build_case_export_rows
from .charts import CaseCharts
from .analytics import CaseAnalytics

# Constants
from .constants import (
    COMPANY_ROW,
    COMPETITOR_ROW,
    COMPANY_LABEL,
    OTHER_COMPANIES_LABEL,
    ACCOUNT_TYPES,
    STATUS_LABELS,
    COLORS,
)

__all__ = [
    # Models
    'CaseRecord',
    'CaseProductLine',
    'Product',
    'FilterSelection',
    'ProductOption',
    'OptionSet',
    'DualRowOptions',
    'MetricsResult',
    'ChartSeries',

    # Engine
    'CaseProductIndex',
    'build_case_product_index',
    'FilterOptionsExtractor',
    'collect_dual_row_options',
    'collect_case_filter_options',
    'CascadeResolver',
    'RowPredicates',
    'update_cascade',
    'build_row_predicates',
    'filter_cases',
    'CaseMetrics',
    'compute_metrics',
    'rank_market_share',

    # Breakdowns
    'aggregate_cases_by_month',
    'aggregate_units_by_month',
    'cases_by_account_type',
    'cases_by_specialist',
    'units_by_specialist',
    'cases_by_product',
    'units_per_category',
    'units_by_product',
    'units_per_company_stacked',
    'truncate_sub_category_label',

    # Export / charts / facade
    'CASE_EXPORT_HEADERS',
    'build_case_table_rows',
    'build_case_export_rows',
    'CaseCharts',
    'CaseAnalytics',

    # Constants
    'COMPANY_ROW',
    'COMPETITOR_ROW',
    'COMPANY_LABEL',
    'OTHER_COMPANIES_LABEL',
    'ACCOUNT_TYPES',
    'STATUS_LABELS',
    'COLORS',
]

__version__ = '1.0.0'
