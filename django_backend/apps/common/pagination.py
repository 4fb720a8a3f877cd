from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response


class LimitOffsetEnvelopePagination(LimitOffsetPagination):
    """limit/offset paging rendered as {"data", "total", "limit", "offset"}"""

    default_limit = 50
    max_limit = 100

    def get_paginated_response(self, data):
        return Response(
            {
                "data": data,
                "total": self.count,
                "limit": self.limit,
                "offset": self.offset,
            }
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "data": schema,
                "total": {"type": "integer"},
                "limit": {"type": "integer"},
                "offset": {"type": "integer"},
            },
        }
