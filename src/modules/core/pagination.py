"""Page-number pagination shared by list endpoints.

Clients page with ``?page=N&limit=M``.  The envelope mirrors what the
mobile and dashboard clients already consume: ``results`` plus a
``pagination`` block with the current page, page count and total.
"""

from __future__ import annotations

from collections import OrderedDict

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data) -> Response:
        page = self.page
        return Response(
            OrderedDict(
                [
                    ("results", data),
                    (
                        "pagination",
                        {
                            "current_page": page.number,
                            "total_pages": page.paginator.num_pages,
                            "total": page.paginator.count,
                            "limit": page.paginator.per_page,
                        },
                    ),
                    ("next", self.get_next_link()),
                    ("previous", self.get_previous_link()),
                ]
            )
        )

    def get_paginated_response_schema(self, schema: dict) -> dict:
        return {
            "type": "object",
            "required": ["results", "pagination"],
            "properties": {
                "results": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "current_page": {"type": "integer"},
                        "total_pages": {"type": "integer"},
                        "total": {"type": "integer"},
                        "limit": {"type": "integer"},
                    },
                },
                "next": {"type": "string", "nullable": True, "format": "uri"},
                "previous": {"type": "string", "nullable": True, "format": "uri"},
            },
        }
