from __future__ import annotations
import django_filters as df

from .models import WorkItem


class AnalyticsFilter(df.FilterSet):
    """
    Optional predicates for filtered analytics. Omitted params are not applied;
    supplied ones combine with AND.
    """
    # Range on last update (inclusive dates)
    start_date = df.DateFilter(field_name="updated_at", lookup_expr="date__gte")
    end_date = df.DateFilter(field_name="updated_at", lookup_expr="date__lte")

    # Exact matches
    assignee = df.CharFilter(field_name="assignee__login", lookup_expr="exact")
    status = df.CharFilter(field_name="status", lookup_expr="exact")
    milestone = df.CharFilter(field_name="milestone", lookup_expr="exact")

    class Meta:
        model = WorkItem
        fields = []
