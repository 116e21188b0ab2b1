"""Shared fixtures for the case analytics tests."""
import numpy as np
import pytest

from crm_analytics.case_analytics import build_case_product_index


def _case(case_id, case_date, doctor, account, company_units, competitor_units,
          submitted_by, specialist, account_type, doctor_id=None, account_id=None):
    return {
        'id': case_id,
        'case_code': f"CASE-{case_id:04d}",
        'case_date': case_date,
        'status': 'approved',
        'account_type': account_type,
        'submitted_by': submitted_by,
        'submitted_by_name': specialist,
        'doctor_id': doctor_id,
        'doctor_name': doctor,
        'account_id': account_id,
        'account_name': account,
        'total_company_units': company_units,
        'total_competitor_units': competitor_units,
    }


def _line(case_id, product_id, name, company, category, sub_category, is_company, units, sequence):
    return {
        'case_id': case_id,
        'product_id': product_id,
        'product_name': name,
        'company_name': company,
        'category': category,
        'sub_category': sub_category,
        'is_company_product': is_company,
        'units': units,
        'sequence': sequence,
    }


@pytest.fixture
def example_cases():
    """Three visits: company only, competitor only, mixed."""
    return [
        _case(1, '2025-01-15', 'Dr. Adams', 'City Hospital', 5, 0, 10, 'Alice', 'Private', 100, 200),
        _case(2, '2025-01-20', 'Dr. Baker', 'General Clinic', 0, 3, 11, 'Bob', 'UPA', 101, 201),
        _case(3, '2025-02-03', 'Dr. Adams', 'General Clinic', 2, 4, 10, 'Alice', 'Private', 100, 201),
    ]


@pytest.fixture
def example_lines():
    return [
        _line(1, 501, 'Stent A', 'A', 'Cardio', 'DES', True, 5, 1),
        _line(2, 601, 'Stent B', 'B', 'Cardio', 'DES', False, 3, 1),
        _line(3, 601, 'Stent B', 'B', 'Cardio', 'DES', False, 4, 2),
        _line(3, 502, 'Balloon A', 'A', 'Cardio', 'Balloon', True, 2, 1),
    ]


@pytest.fixture
def example_index(example_lines):
    return build_case_product_index(example_lines)


@pytest.fixture
def portfolio_lines():
    """Two company brands and two competitors across two categories."""
    return [
        _line(1, 1, 'Acme DES', 'Acme', 'Cardio', 'DES', True, 4, 1),
        _line(1, 11, 'Boston DES', 'Boston', 'Cardio', 'DES', False, 2, 2),
        _line(2, 2, 'Acme Balloon', 'Acme', 'Cardio', 'Balloon', True, 3, 1),
        _line(2, 12, 'Medix Coil', 'Medix', 'Neuro', 'Coil', False, 6, 2),
        _line(3, 3, 'Acme Coil', 'Acme', 'Neuro', 'Coil', True, 1, 1),
        _line(3, 4, 'Zenith Flow', 'Zenith', 'Neuro', 'Flow Diverter', True, 2, 2),
        _line(4, 13, 'Boston Neuro Stent', 'Boston', 'Neuro', 'Stent', False, 5, 1),
    ]


@pytest.fixture
def portfolio_catalog():
    return [
        {'id': 1, 'name': 'Acme DES', 'company': 'Acme', 'is_company_product': True},
        {'id': 99, 'name': 'Acme New Launch', 'company': 'Acme', 'is_company_product': True},
        {'id': 98, 'name': 'Nova Coil', 'company': 'Nova', 'is_company_product': False},
    ]


@pytest.fixture
def random_dataset():
    """Seeded random cases and lines for invariant checks."""
    rng = np.random.default_rng(7)
    company_brands = ['Acme', 'Zenith']
    competitors = ['Boston', 'Medix', 'Nova', 'Orbit']
    categories = ['Cardio', 'Neuro']
    sub_categories = ['DES', 'Coil', 'Balloon']

    cases, lines = [], []
    for case_id in range(1, 81):
        case_lines = []
        for sequence in range(int(rng.integers(0, 5))):
            is_company = bool(rng.integers(0, 2))
            brands = company_brands if is_company else competitors
            company = str(rng.choice(brands))
            category = str(rng.choice(categories))
            sub_category = str(rng.choice(sub_categories))
            product_id = f"{company}-{category}-{sub_category}"
            case_lines.append(_line(
                case_id, product_id, product_id.replace('-', ' '), company,
                category, sub_category, is_company, int(rng.integers(0, 10)), sequence + 1,
            ))
        lines.extend(case_lines)
        cases.append(_case(
            case_id, f"2025-{int(rng.integers(1, 13)):02d}-01",
            f"Dr. {int(rng.integers(0, 15))}", f"Account {int(rng.integers(0, 8))}",
            sum(l['units'] for l in case_lines if l['is_company_product']),
            sum(l['units'] for l in case_lines if not l['is_company_product']),
            int(rng.integers(1, 4)), 'Rep', 'Private',
        ))
    return cases, lines
