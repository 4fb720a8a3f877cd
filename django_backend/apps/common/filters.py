from django_filters import rest_framework as filters

ORDER_CHOICES = [("asc", "asc"), ("desc", "desc")]


def sort_choices(*fields):
    return [(f, f) for f in fields]


class SortedFilterSet(filters.FilterSet):
    """
    FilterSet with ``sort_by`` / ``order`` query parameters.

    Subclasses declare ``sort_by`` as a ChoiceFilter over the sortable fields
    and set the defaults. Ties are broken by primary key in the same direction.
    """

    default_sort = "id"
    default_order = "asc"

    order = filters.ChoiceFilter(choices=ORDER_CHOICES, method="filter_noop")

    def filter_noop(self, queryset, name, value):
        return queryset

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        data = self.form.cleaned_data
        sort_by = data.get("sort_by") or self.default_sort
        prefix = "-" if (data.get("order") or self.default_order) == "desc" else ""
        return queryset.order_by(f"{prefix}{sort_by}", f"{prefix}id")
