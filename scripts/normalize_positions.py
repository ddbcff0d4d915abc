from bandset.db import SessionLocal
from bandset.db.models import Performance, Round
from bandset.db.setlists import RoundItemDAO, SetlistItemDAO


def migrate(db=None) -> int:
    """Renumber every round and setlist to positions ``0..n-1``.

    Existing order is kept; ties are broken by item id.  Returns the number
    of items whose position changed."""
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        changed = 0
        for dao, model in ((RoundItemDAO(db), Round), (SetlistItemDAO(db), Performance)):
            for (container_id,) in db.query(model.id).order_by(model.id).all():
                changed += dao.normalize(container_id)
        return changed
    finally:
        if own_session:
            db.close()


if __name__ == '__main__':
    changed = migrate()
    if changed:
        print(f'Renumbered {changed} item(s).')
    else:
        print('No migration necessary.')
