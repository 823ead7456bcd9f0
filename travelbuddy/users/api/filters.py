import django_filters
from django.db.models import Q

from travelbuddy.users.models import User


def _normalized(values) -> set[str]:
    return {str(value).strip().lower() for value in values if str(value).strip()}


class UserFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_q")
    location = django_filters.CharFilter(field_name="location", lookup_expr="icontains")
    interests = django_filters.CharFilter(method="filter_interests")

    class Meta:
        model = User
        fields = ["q", "location", "interests"]

    def filter_q(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(bio__icontains=value))

    def filter_interests(self, queryset, name, value):
        """Comma separated; a user matches when any interest overlaps."""
        wanted = _normalized(value.split(","))
        if not wanted:
            return queryset
        # Interests are a JSON list, matched in Python to stay backend neutral
        matching = [
            pk
            for pk, interests in queryset.values_list("pk", "interests")
            if wanted & _normalized(interests or [])
        ]
        return queryset.filter(pk__in=matching)
