import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    userId = django_filters.CharFilter(field_name="user_id")
    storeId = django_filters.UUIDFilter(field_name="store_id")
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "userId",
            "storeId",
            "status",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
