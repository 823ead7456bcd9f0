import django_filters
from django.db.models import Q

from travelbuddy.activities.models import Activity


class ActivityFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_q")
    category = django_filters.CharFilter(method="filter_category")
    date_from = django_filters.DateTimeFilter(field_name="time", lookup_expr="gte")
    date_to = django_filters.DateTimeFilter(field_name="time", lookup_expr="lte")

    class Meta:
        model = Activity
        fields = ["q", "category", "date_from", "date_to"]

    def filter_q(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value)
            | Q(location__icontains=value)
            | Q(description__icontains=value)
            | Q(tags__icontains=value)
        )

    def filter_category(self, queryset, name, value):
        # "all" is what the category picker sends for no filter
        if not value or value == "all":
            return queryset
        return queryset.filter(category=value)
