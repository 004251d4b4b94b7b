import django_filters

from modules.core.roles import is_staff_role
from modules.orders.constants import OrderStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    """List filters; ``customer`` and the date range apply to staff only."""

    status = django_filters.ChoiceFilter(
        field_name="status", choices=OrderStatus.choices
    )
    customer = django_filters.NumberFilter(method="filter_staff_only")
    start_date = django_filters.DateFilter(method="filter_staff_only")
    end_date = django_filters.DateFilter(method="filter_staff_only")

    class Meta:
        model = Order
        fields = ["status", "customer", "start_date", "end_date"]

    LOOKUPS = {
        "customer": "customer_id",
        "start_date": "created_at__date__gte",
        "end_date": "created_at__date__lte",
    }

    def filter_staff_only(self, queryset, name, value):
        user = getattr(self.request, "user", None)
        if value is None or not is_staff_role(user):
            return queryset
        return queryset.filter(**{self.LOOKUPS[name]: value})
