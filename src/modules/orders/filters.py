import django_filters

from modules.orders.constants import ApprovalStatus, OrderStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        field_name="status", choices=OrderStatus.choices
    )
    approval_status = django_filters.ChoiceFilter(
        field_name="approval_status", choices=ApprovalStatus.choices
    )
    order_number = django_filters.CharFilter(
        field_name="order_number", lookup_expr="icontains"
    )
    company = django_filters.NumberFilter(field_name="company_id")
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
            "approval_status",
            "order_number",
            "company",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
