"""Tests for dual-row filter option extraction."""
from crm_analytics.case_analytics import (
    FilterOptionsExtractor,
    collect_case_filter_options,
    collect_dual_row_options,
)


def test_rows_are_built_from_their_own_partition(portfolio_lines):
    options = collect_dual_row_options(portfolio_lines)

    assert options.company.companies == ['Acme', 'Zenith']
    assert options.competitor.companies == ['Boston', 'Medix']
    assert options.company.categories == ['Cardio', 'Neuro']
    assert options.company.sub_categories == ['Balloon', 'Coil', 'DES', 'Flow Diverter']
    assert options.competitor.sub_categories == ['Coil', 'DES', 'Stent']


def test_company_and_competitor_values_never_mix(portfolio_lines):
    options = collect_dual_row_options(portfolio_lines)

    assert not set(options.company.companies) & set(options.competitor.companies)
    assert not set(options.company.product_values) & set(options.competitor.product_values)


def test_competitor_options_ignore_company_lines(portfolio_lines):
    competitor_only = [line for line in portfolio_lines if not line['is_company_product']]

    full = collect_dual_row_options(portfolio_lines).competitor
    alone = collect_dual_row_options(competitor_only).competitor

    assert full.to_dict() == alone.to_dict()


def test_product_options_keep_first_occurrence():
    options = collect_dual_row_options([
        {'case_id': 1, 'product_id': 7, 'product_name': 'First Label', 'is_company_product': True},
        {'case_id': 2, 'product_id': 7, 'product_name': 'Second Label', 'is_company_product': True},
        {'case_id': 2, 'product_id': None, 'product_name': 'By Name', 'is_company_product': True},
    ])

    assert [(o.value, o.label) for o in options.company.product_options] == [
        ('7', 'First Label'),
        ('By Name', 'By Name'),
    ]


def test_catalog_products_complete_their_side_only(portfolio_lines, portfolio_catalog):
    options = collect_dual_row_options(portfolio_lines, portfolio_catalog)

    company_values = options.company.product_values
    assert company_values[-1] == '99'
    assert company_values.count('1') == 1
    assert '98' in options.competitor.product_values
    assert '98' not in company_values
    assert '99' not in options.competitor.product_values


def test_missing_names_get_unknown_label():
    options = collect_dual_row_options([
        {'case_id': 1, 'product_id': 3, 'product_name': None, 'is_company_product': False},
    ])

    assert options.competitor.product_options[0].label == 'Unknown Product'


def test_blank_values_are_not_options():
    options = collect_dual_row_options([
        {'case_id': 1, 'company_name': '', 'category': None, 'sub_category': '  ', 'is_company_product': True},
    ])

    assert options.company.companies == []
    assert options.company.categories == []
    assert options.company.sub_categories == []


def test_single_row_options_use_catalog_only_without_line_products(portfolio_catalog):
    without_products = collect_case_filter_options(
        [{'case_id': 1, 'company_name': 'Acme'}], portfolio_catalog
    )
    assert [o.value for o in without_products.product_options] == ['1', '99', '98']

    with_products = collect_case_filter_options(
        [{'case_id': 1, 'product_id': 5, 'product_name': 'Used'}], portfolio_catalog
    )
    assert [o.value for o in with_products.product_options] == ['5']


def test_extractor_accepts_index(example_index):
    options = FilterOptionsExtractor(example_index).extract_dual_row_options()

    assert options.company.companies == ['A']
    assert options.competitor.companies == ['B']
    assert options.for_row('competitor').product_values == ['601']


def test_empty_input():
    options = collect_dual_row_options([])

    assert options.company.to_dict() == {
        'companies': [], 'categories': [], 'sub_categories': [], 'product_options': [],
    }
