import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def reviews_bed():
    from reviews.domain import reviews
    from reviews.utils.db import drop_db, setup_db

    bed = DomainFixture(reviews)
    bed.setup()
    setup_db(reviews)
    yield bed
    drop_db(reviews)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(reviews_bed):
    from reviews.review.store import reset_review_store

    with reviews_bed.domain_context():
        yield

        reset_review_store()
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def recomputer():
    from reviews.config import RecomputeSettings
    from reviews.domain import reviews
    from reviews.rating.recomputation import RatingRecomputer

    engine = RatingRecomputer(reviews, RecomputeSettings(mode="sync"))
    yield engine
    engine.shutdown()


@pytest.fixture()
def store(recomputer):
    from reviews.domain import reviews
    from reviews.review.store import ReviewStore

    return ReviewStore(reviews, recomputer=recomputer)
