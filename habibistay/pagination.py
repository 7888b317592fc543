import math

from rest_framework.pagination import PageNumberPagination, _positive_int
from rest_framework.response import Response


class PageSizePagination(PageNumberPagination):
    """
    ?page=N&pageSize=M (limit= is accepted as an alias).
    Response: {"results": [...], "pagination": {total, page, pageSize, totalPages}}
    """
    page_size = 10
    page_query_param = "page"
    page_size_query_param = "pageSize"
    max_page_size = 100

    def get_page_size(self, request):
        for param in (self.page_size_query_param, "limit"):
            if param in request.query_params:
                try:
                    return _positive_int(request.query_params[param], strict=True, cutoff=self.max_page_size)
                except (KeyError, ValueError):
                    pass
        return self.page_size

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        page_size = self.page.paginator.per_page
        return Response({
            "results": data,
            "pagination": {
                "total": total,
                "page": self.page.number,
                "pageSize": page_size,
                "totalPages": math.ceil(total / page_size) if page_size else 0,
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": ["results", "pagination"],
            "properties": {
                "results": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer", "example": 23},
                        "page": {"type": "integer", "example": 1},
                        "pageSize": {"type": "integer", "example": 10},
                        "totalPages": {"type": "integer", "example": 3},
                    },
                },
            },
        }
