# crm_analytics/case_analytics/export.py
"""
Case Table and Export Rows

Flattens each case and its ordered product lines into one wide row:
case fields first, then up to 12 product column groups
(productN_name / type / company / category / sub_category / units).

Writing the rows to a file is left to the caller.

Usage:
    rows = build_case_table_rows(cases, index)
    export_df = build_case_export_rows(cases, index, use_headers=True)
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from ..config import config
from .constants import COMPANY_LABEL, COMPETITOR_LABEL, STATUS_LABELS
from .indexer import CaseProductIndex
from .models import prepare_cases, is_unset

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = ['name', 'type', 'company', 'category', 'sub_category', 'units']

PRODUCT_FIELD_HEADERS = {
    'name': 'Product {n}',
    'type': 'P{n} Type',
    'company': 'P{n} Company',
    'category': 'P{n} Category',
    'sub_category': 'P{n} Sub-category',
    'units': 'P{n} Units',
}

CASE_TABLE_FIELDS = {
    'id': 'id',
    'case_code': 'case_code',
    'case_date': 'case_date',
    'specialist': 'submitted_by_name',
    'line': 'line_name',
    'status': 'status',
    'account': 'account_name',
    'account_type': 'account_type',
    'doctor': 'doctor_name',
    'company_units': 'total_company_units',
    'competitor_units': 'total_competitor_units',
}

EXPORT_LEAD_COLUMNS = [
    'case_code', 'case_date', 'specialist', 'line', 'status',
    'account', 'account_type', 'doctor',
]

EXPORT_TAIL_COLUMNS = ['company_units', 'competitor_units']


def product_columns(limit: int) -> List[str]:
    return [f"product{n}_{field}" for n in range(1, limit + 1) for field in PRODUCT_FIELDS]


def build_export_headers(limit: int = 12) -> Dict[str, str]:
    """Column name -> human readable header."""
    headers = {
        'case_code': 'Case Code',
        'case_date': 'Case Date',
        'specialist': 'Product Specialist',
        'line': 'Line',
        'status': 'Status',
        'account': 'Account',
        'account_type': 'Account Type',
        'doctor': 'Doctor',
    }
    for n in range(1, limit + 1):
        for field in PRODUCT_FIELDS:
            headers[f"product{n}_{field}"] = PRODUCT_FIELD_HEADERS[field].format(n=n)
    headers['company_units'] = 'Company Units'
    headers['competitor_units'] = 'Competitor Units'
    return headers


CASE_EXPORT_HEADERS = build_export_headers(12)


def _text(value: Any) -> str:
    return '' if is_unset(value) else str(value)


def status_label(status: Any) -> str:
    """Display label for a case status; unknown codes are sentence-cased."""
    if is_unset(status):
        return ''
    status = str(status)
    return STATUS_LABELS.get(status, status.replace('_', ' ').capitalize())


def map_product_columns(lines: List[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
    """
    Product column groups for one case, padded with blanks up to `limit`.

    Lines without a product name are rendered blank.
    """
    filler = {'name': '', 'type': '', 'company': '', 'category': '', 'sub_category': '', 'units': 0}
    columns = []
    for line in lines[:limit]:
        if is_unset(line.get('product_name')):
            columns.append(dict(filler))
            continue
        is_company = bool(line.get('is_company_product'))
        side = COMPANY_LABEL if is_company else COMPETITOR_LABEL
        company = line.get('company_name')
        columns.append({
            'name': str(line['product_name']),
            'type': side,
            'company': side if is_unset(company) else str(company),
            'category': _text(line.get('category')),
            'sub_category': _text(line.get('sub_category')),
            'units': int(line.get('units') or 0),
        })
    while len(columns) < limit:
        columns.append(dict(filler))
    return columns


def build_case_table_rows(
    cases: Union[pd.DataFrame, Iterable[Any], None],
    index: CaseProductIndex,
    limit: Optional[int] = None
) -> pd.DataFrame:
    """
    One wide row per case for the cases table.

    Args:
        cases: Case records
        index: Case product index
        limit: Product column groups; defaults to MAX_PRODUCT_COLUMNS

    Returns:
        DataFrame with case fields followed by product column groups
    """
    limit = limit or config.settings.max_product_columns
    columns = list(CASE_TABLE_FIELDS) + product_columns(limit)

    frame = prepare_cases(cases)
    if frame.empty:
        return pd.DataFrame(columns=columns)

    rows = []
    for case in frame.to_dict('records'):
        row = {}
        for out_col, src_col in CASE_TABLE_FIELDS.items():
            value = case.get(src_col)
            row[out_col] = None if is_unset(value) else value
        for n, product in enumerate(map_product_columns(index.get(case['id']), limit), start=1):
            for field in PRODUCT_FIELDS:
                row[f"product{n}_{field}"] = product[field]
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)


def build_case_export_rows(
    cases: Union[pd.DataFrame, Iterable[Any], None],
    index: CaseProductIndex,
    use_headers: bool = False,
    limit: Optional[int] = None
) -> pd.DataFrame:
    """Export column order; with `use_headers`, readable headers and status labels."""
    limit = limit or config.settings.max_product_columns
    table = build_case_table_rows(cases, index, limit)
    columns = EXPORT_LEAD_COLUMNS + product_columns(limit) + EXPORT_TAIL_COLUMNS
    export = table[columns]
    if use_headers:
        export = export.assign(status=export['status'].map(status_label))
        export = export.rename(columns=build_export_headers(limit))
    logger.info(f"Built {len(export):,} case export rows")
    return export
