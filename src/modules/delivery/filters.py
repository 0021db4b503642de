import django_filters

from modules.delivery.models import Transaction


class TransactionFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    delivery_method = django_filters.CharFilter(
        field_name="delivery_method", lookup_expr="iexact"
    )
    buyer = django_filters.UUIDFilter(field_name="buyer_id")
    seller = django_filters.UUIDFilter(field_name="seller_id")
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Transaction
        fields = [
            "status",
            "delivery_method",
            "buyer",
            "seller",
            "start_date",
            "end_date",
        ]
