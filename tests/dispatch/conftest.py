import pytest
from dispatch.gateway import get_order_gateway, reset_order_gateway
from dispatch.notifier import get_notifier, reset_notifier
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def dispatch_bed():
    from dispatch.domain import dispatch

    bed = DomainFixture(dispatch)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(dispatch_bed):
    reset_order_gateway()
    reset_notifier()
    with dispatch_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def gateway():
    """The active FakeOrderGateway, fresh for every test."""
    return get_order_gateway()


@pytest.fixture()
def notifier():
    """The active FakeCustomerNotifier, fresh for every test."""
    return get_notifier()
