"""Tests for the CaseAnalytics facade."""
import pandas as pd

from crm_analytics import CaseAnalytics, FilterSelection


def _analytics(example_cases, example_lines, catalog=None):
    return CaseAnalytics(example_cases, example_lines, catalog)


def test_snapshot_summary(example_cases, example_lines):
    summary = _analytics(example_cases, example_lines).summary()

    assert summary['total_case_count'] == 3
    assert summary['company_units'] == 7
    assert summary['active_accounts'] == 2


def test_filter_options_and_cascade(example_cases, example_lines):
    analytics = _analytics(example_cases, example_lines)

    assert analytics.filter_options.company.companies == ['A']
    options = analytics.cascade('company', FilterSelection(sub_category='Balloon'))
    assert options.product_values == ['502']


def test_metrics_honour_row_selections(example_cases, example_lines):
    analytics = _analytics(example_cases, example_lines)

    result = analytics.metrics({'product': '502'}, None, use_line_level_units=True)

    assert result.company_case_count == 1
    assert result.company_units == 2


def test_matching_cases_modes(example_cases, example_lines):
    analytics = _analytics(example_cases, example_lines)

    assert list(analytics.matching_cases(mode='mixed')['id']) == [3]
    assert list(analytics.matching_cases(competitor_selection={'company': 'B'}, mode='competitor')['id']) == [2, 3]


def test_chart_data(example_cases, example_lines):
    analytics = _analytics(example_cases, example_lines)

    assert analytics.market_share('count').labels == ['Company', 'B']
    assert list(analytics.monthly_cases()['month']) == ['Jan 2025', 'Feb 2025']
    monthly_units = analytics.monthly_units(use_line_level_units=True)
    assert list(monthly_units['company_units']) == [5, 2]
    assert len(analytics.table_rows()) == 3


def test_scoped_to_employee(example_cases, example_lines):
    scoped = _analytics(example_cases, example_lines).scoped_to_employee(10)

    assert list(scoped.cases['id']) == [1, 3]
    assert sorted(scoped.index.case_ids) == [1, 3]
    assert scoped.summary()['competitor_units'] == 4


def test_rebuild_returns_new_snapshot(example_cases, example_lines):
    analytics = _analytics(example_cases, example_lines)
    new_case = dict(example_cases[0], id=4, case_code='CASE-0004')
    new_line = dict(example_lines[0], case_id=4)

    rebuilt = analytics.rebuild(
        cases=example_cases + [new_case],
        case_products=pd.concat([analytics.index.frame, pd.DataFrame([new_line])], ignore_index=True),
    )

    assert rebuilt is not analytics
    assert len(rebuilt.cases) == 4
    assert 4 in rebuilt.index
    assert len(analytics.cases) == 3
    assert 4 not in analytics.index


def test_catalog_is_carried_into_options(example_cases, example_lines, portfolio_catalog):
    analytics = _analytics(example_cases, example_lines, portfolio_catalog)

    assert analytics.filter_options.company.product_values == ['501', '502', '1', '99']
    assert analytics.rebuild().filter_options.competitor.product_values == ['601', '98']
