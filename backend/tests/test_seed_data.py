from app.models import Route
from seed_data import ROUTES, seed_routes


def test_seed_routes_is_idempotent(db):
    assert seed_routes(db) == len(ROUTES)
    db.commit()
    assert seed_routes(db) == 0
    db.commit()

    routes = db.query(Route).all()
    assert len(routes) == len(ROUTES)
    assert sum(1 for r in routes if not r.is_active) == 1
