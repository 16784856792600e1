from flask import request


def pagination_args(default_limit=10):
    return (
        request.args.get("page", 1, type=int),
        request.args.get("limit", default_limit, type=int),
    )


def paginate_query(query, page, limit):
    page = max(int(page) if page else 1, 1)
    limit = min(max(int(limit) if limit else 10, 1), 100)
    items = query.offset((page - 1) * limit).limit(limit).all()
    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit
    return items, {"total": total, "page": page, "limit": limit, "total_pages": total_pages}
