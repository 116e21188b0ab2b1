# crm_analytics/case_analytics/constants.py
"""
Constants for Case Analytics Module

Centralized configuration for:
- Row definitions (company vs competitor)
- Column sets for normalized frames
- Approval statuses and account types
- Chart labels and colors
"""

# =====================================================================
# FILTER ROWS
# =====================================================================

COMPANY_ROW = 'company'
COMPETITOR_ROW = 'competitor'
ROWS = (COMPANY_ROW, COMPETITOR_ROW)

# Cascade order: changing a field clears every field after it
SELECTION_FIELDS = ('company', 'category', 'sub_category', 'product')

# Modes accepted by filter_cases()
CASE_MATCH_MODES = ('company', 'competitor', 'mixed', 'any')

# =====================================================================
# NORMALIZED COLUMN SETS
# =====================================================================

CASE_COLUMNS = [
    'id', 'case_code', 'case_date', 'status', 'account_type',
    'submitted_by', 'submitted_by_name', 'line_name',
    'doctor_id', 'doctor_name', 'account_id', 'account_name',
    'total_company_units', 'total_competitor_units',
]

LINE_COLUMNS = [
    'case_id', 'product_id', 'product_name', 'company_name',
    'category', 'sub_category', 'is_company_product', 'units', 'sequence',
]

# Free-text line fields offered as filter options; stripped on load
LINE_TEXT_COLUMNS = ['product_name', 'company_name', 'category', 'sub_category']

PRODUCT_COLUMNS = [
    'id', 'name', 'company', 'category', 'sub_category', 'is_company_product',
]

# =====================================================================
# CASE STATUS / ACCOUNT TYPES
# =====================================================================

STATUS_LABELS = {
    'pending_manager': 'Pending Manager',
    'pending_admin': 'Pending Admin',
    'approved': 'Approved',
    'rejected': 'Rejected',
}

ACCOUNT_TYPES = ['Private', 'UPA', 'Military']

# =====================================================================
# LABELS
# =====================================================================

COMPANY_LABEL = 'Company'
COMPETITOR_LABEL = 'Competitor'
OTHER_COMPANIES_LABEL = 'Other Companies'
UNKNOWN_PRODUCT_LABEL = 'Unknown Product'
UNKNOWN_LABEL = 'Unknown'
UNCATEGORIZED_LABEL = 'Uncategorized'
UNKNOWN_MONTH_LABEL = 'Unknown'

MARKET_SHARE_METRICS = ('count', 'units')
UNIT_ATTRIBUTIONS = ('line', 'case_total')

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    "company": "#22d3ee",       # Cyan
    "competitor": "#ec4899",    # Pink
    "cases": "#6366f1",         # Indigo
    "accounts": "#f59e0b",      # Amber
    "doctors": "#38bdf8",       # Sky
    "other": "#6b7280",         # Gray

    # Misc
    "text_dark": "#333333",
    "text_light": "#666666",
}

STACKED_PALETTE = [
    'rgba(99,102,241,0.8)',
    'rgba(236,72,153,0.8)',
    'rgba(34,197,94,0.8)',
    'rgba(251,191,36,0.8)',
    'rgba(14,165,233,0.8)',
    'rgba(168,85,247,0.8)',
    'rgba(244,63,94,0.8)',
    'rgba(59,130,246,0.8)',
    'rgba(16,185,129,0.8)',
    'rgba(245,158,11,0.8)',
]

OTHER_COMPANIES_COLOR = 'rgba(107,114,128,0.8)'

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_WIDTH = 800
CHART_HEIGHT = 400

PIE_CHART_WIDTH = 400
PIE_CHART_HEIGHT = 400
