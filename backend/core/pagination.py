"""Page-number pagination shared by every list endpoint."""

from rest_framework.pagination import PageNumberPagination


class StandardPagination(PageNumberPagination):
    """``?page=N&limit=M`` with ``limit`` capped at 100."""

    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100


def paginate(request, queryset, serializer_class, *, view=None, context=None):
    """Paginate ``queryset`` and return the paginated DRF ``Response``."""
    paginator = StandardPagination()
    page = paginator.paginate_queryset(queryset, request, view=view)
    serializer = serializer_class(page, many=True, context=context or {"request": request})
    return paginator.get_paginated_response(serializer.data)
