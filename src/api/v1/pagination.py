"""Pagination for API v1 lists."""

from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """Lead and report lists; the console asks for larger pages on the board view."""

    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 500
