"""Repository query helpers."""

PAGE_SIZE = 500


def fetch_all(repo, **filters):
    """Return every record matching ``filters``, paging through the DAO.

    ``query.all()`` returns a single page; full re-derivations need the
    whole population.
    """
    query = repo._dao.query
    if filters:
        query = query.filter(**filters)

    items = []
    offset = 0
    while True:
        results = query.offset(offset).limit(PAGE_SIZE).all()
        items.extend(results.items)
        offset += len(results.items)
        if not results.items or offset >= results.total:
            return items
