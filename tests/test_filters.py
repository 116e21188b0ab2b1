"""Tests for cascading options, row predicates and case filtering."""
import dataclasses
import itertools

import pytest

from crm_analytics.case_analytics import (
    CascadeResolver,
    CaseRecord,
    FilterSelection,
    build_case_product_index,
    build_row_predicates,
    collect_dual_row_options,
    filter_cases,
    update_cascade,
)


# =============================================================================
# FILTER SELECTION
# =============================================================================

def test_blank_selection_fields_are_unset():
    selection = FilterSelection(company='  ', category='', sub_category=None, product=None)

    assert selection.is_empty
    assert FilterSelection(product=601).product == '601'


def test_changing_a_field_clears_everything_below():
    selection = FilterSelection(company='Acme', category='Cardio', sub_category='DES', product='1')

    changed = selection.with_field('category', 'Neuro')

    assert changed == FilterSelection(company='Acme', category='Neuro')
    assert selection.category == 'Cardio'


def test_unknown_selection_field_raises():
    with pytest.raises(ValueError):
        FilterSelection().with_field('brand', 'x')


def test_selection_from_dict_accepts_camel_case():
    selection = FilterSelection.from_dict({'company': 'Acme', 'subCategory': 'DES'})

    assert selection.sub_category == 'DES'


# =============================================================================
# CASCADE
# =============================================================================

@pytest.fixture
def resolver(portfolio_lines, portfolio_catalog):
    return CascadeResolver(portfolio_lines, collect_dual_row_options(portfolio_lines, portfolio_catalog))


def test_empty_selection_returns_full_lists(resolver, portfolio_lines, portfolio_catalog):
    full = collect_dual_row_options(portfolio_lines, portfolio_catalog).company

    options = resolver.resolve('company', FilterSelection())

    assert options.to_dict() == full.to_dict()


def test_company_narrows_categories_subcategories_and_products(resolver):
    options = resolver.resolve('company', FilterSelection(company='Zenith'))

    assert options.companies == ['Acme', 'Zenith']
    assert options.categories == ['Neuro']
    assert options.sub_categories == ['Flow Diverter']
    assert [o.label for o in options.product_options] == ['Zenith Flow']


def test_category_narrows_independently_of_company(resolver):
    options = resolver.resolve('company', FilterSelection(category='Neuro'))

    assert options.categories == ['Cardio', 'Neuro']
    assert options.sub_categories == ['Coil', 'Flow Diverter']
    assert [o.label for o in options.product_options] == ['Acme Coil', 'Zenith Flow']


def test_narrowed_products_are_sorted_by_label(resolver):
    options = resolver.resolve('company', FilterSelection(company='Acme'))

    assert options.sub_categories == ['Balloon', 'Coil', 'DES']
    assert [o.label for o in options.product_options] == ['Acme Balloon', 'Acme Coil', 'Acme DES']


def test_competitor_row_only_sees_competitor_lines(resolver):
    boston = resolver.resolve('competitor', FilterSelection(company='Boston'))
    assert boston.categories == ['Cardio', 'Neuro']
    assert boston.sub_categories == ['DES', 'Stent']

    acme = resolver.resolve('competitor', FilterSelection(company='Acme'))
    assert acme.categories == []
    assert acme.sub_categories == []
    assert acme.product_options == []


def test_update_cascade_accepts_single_row_options(portfolio_lines):
    full = collect_dual_row_options(portfolio_lines).competitor

    options = update_cascade('competitor', {'company': 'Medix'}, portfolio_lines, full)

    assert options.categories == ['Neuro']
    assert options.product_values == ['12']


def test_offered_values_select_their_own_lines():
    lines = [
        {'case_id': 1, 'product_id': None, 'product_name': ' Acme DES ', 'company_name': 'Acme ',
         'category': ' Cardio', 'sub_category': 'DES ', 'is_company_product': True, 'units': 2},
    ]
    index = build_case_product_index(lines)
    options = collect_dual_row_options(index).company

    picked = FilterSelection(
        company=options.companies[0],
        category=options.categories[0],
        sub_category=options.sub_categories[0],
        product=options.product_values[0],
    )
    predicates = build_row_predicates(index, picked)
    narrowed = CascadeResolver(index).resolve('company', FilterSelection(company=options.companies[0]))

    assert picked.company == 'Acme'
    assert predicates.company_case_ids == {1}
    assert narrowed.categories == ['Cardio']
    assert narrowed.product_values == ['Acme DES']


def test_unknown_row_raises(resolver):
    with pytest.raises(ValueError):
        resolver.resolve('partner', FilterSelection())


@pytest.mark.parametrize('row', ['company', 'competitor'])
def test_adding_a_constraint_never_grows_option_lists(resolver, portfolio_lines, portfolio_catalog, row):
    full = collect_dual_row_options(portfolio_lines, portfolio_catalog).for_row(row)
    choices = {
        'company': [None] + full.companies,
        'category': [None] + full.categories,
        'sub_category': [None] + full.sub_categories,
    }

    for company, category, sub_category in itertools.product(*choices.values()):
        base = FilterSelection(company=company, category=category, sub_category=sub_category)
        base_options = resolver.resolve(row, base)
        for field, values in choices.items():
            if getattr(base, field) is not None:
                continue
            for value in values[1:]:
                narrowed = resolver.resolve(row, dataclasses.replace(base, **{field: value}))
                assert len(narrowed.categories) <= len(base_options.categories)
                assert len(narrowed.sub_categories) <= len(base_options.sub_categories)
                assert len(narrowed.product_options) <= len(base_options.product_options)


# =============================================================================
# ROW PREDICATES
# =============================================================================

def test_empty_selections_require_lines_on_each_side(example_index):
    predicates = build_row_predicates(example_index)

    assert predicates.company_case_ids == {1, 3}
    assert predicates.competitor_case_ids == {2, 3}
    assert predicates.is_mixed(3)
    assert not predicates.has_active_filters


def test_company_filter_keeps_mixed_case_on_both_rows(example_index):
    predicates = build_row_predicates(example_index, FilterSelection(company='A'))

    assert predicates.company_matches(3)
    assert predicates.competitor_matches(3)
    assert predicates.has_active_filters


def test_product_matches_by_id_or_name(example_index):
    by_id = build_row_predicates(example_index, competitor_selection={'product': '601'})
    by_name = build_row_predicates(example_index, competitor_selection={'product': 'Stent B'})

    assert by_id.competitor_case_ids == {2, 3}
    assert by_name.competitor_case_ids == {2, 3}


def test_selection_fields_must_all_match_on_one_line(example_index):
    predicates = build_row_predicates(
        example_index, FilterSelection(company='A', sub_category='DES', product='502')
    )

    assert predicates.company_case_ids == frozenset()


def test_company_name_never_matches_competitor_lines(example_index):
    predicates = build_row_predicates(example_index, competitor_selection=FilterSelection(company='A'))

    assert predicates.competitor_case_ids == frozenset()


def test_case_without_lines_matches_neither_row():
    index = build_case_product_index([])
    predicates = build_row_predicates(index)

    assert not predicates.company_matches(1)
    assert not predicates.competitor_matches(1)


def test_predicates_accept_ids_mappings_and_records(example_index):
    predicates = build_row_predicates(example_index)

    assert predicates.company_matches(1)
    assert predicates.company_matches({'id': 1})
    assert predicates.company_matches(CaseRecord(id=1))
    assert not predicates.company_matches(CaseRecord(id=2))


def test_matched_lines_follow_selection(example_index):
    predicates = build_row_predicates(example_index, FilterSelection(sub_category='Balloon'))

    assert list(predicates.matching_lines('company')['product_name']) == ['Balloon A']
    assert len(predicates.matching_lines('competitor')) == 2


# =============================================================================
# CASE FILTERING
# =============================================================================

@pytest.mark.parametrize('mode, expected', [
    ('company', [1, 3]),
    ('competitor', [2, 3]),
    ('mixed', [3]),
    ('any', [1, 2, 3]),
])
def test_filter_cases_modes(example_cases, example_index, mode, expected):
    predicates = build_row_predicates(example_index)

    result = filter_cases(example_cases, predicates, mode)

    assert list(result['id']) == expected


def test_filter_cases_rejects_unknown_mode(example_cases, example_index):
    with pytest.raises(ValueError):
        filter_cases(example_cases, build_row_predicates(example_index), 'both')
