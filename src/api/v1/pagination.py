"""Page number pagination for the /api/v1/ endpoints."""
from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """Plans, rule blocks, gates and assignments; clients may pick ``page_size``."""

    page_size = 25
    page_size_query_param = "page_size"
    max_page_size = 200


class StatementResultsSetPagination(PageNumberPagination):
    """Statements are listed per agency and month, so pages are larger."""

    page_size = 100
    page_size_query_param = "page_size"
    max_page_size = 1000
