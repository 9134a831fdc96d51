import django_filters

from modules.orders.constants import LegacyOrderStatus, OrderStatus, PaymentStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    order_status = django_filters.ChoiceFilter(choices=LegacyOrderStatus.choices)
    payment_status = django_filters.ChoiceFilter(choices=PaymentStatus.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    order_number = django_filters.CharFilter(
        field_name="order_number", lookup_expr="icontains"
    )
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__lte"
    )
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "order_status",
            "payment_status",
            "customer",
            "order_number",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
