from datetime import date

import pytest

from kiosc_core.data import prepare_context
from kiosc_core.filters import normalize_filters
from kiosc_core.metrics_invoices import derive_invoices
from kiosc_core.sample_data import sample_app_data


TODAY = date(2024, 2, 1)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def app_data():
    data = sample_app_data()
    data.invoices = derive_invoices(data.transactions, today=TODAY)
    return data


@pytest.fixture
def make_ctx(app_data):
    def _make(**raw):
        filters = normalize_filters(raw)
        return filters, prepare_context(filters, app_data, today=TODAY)

    return _make
