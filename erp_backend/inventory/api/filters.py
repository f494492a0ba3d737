# inventory/api/filters.py

import django_filters

from inventory.models import ItemWarehouse, StockAdjustment, StockTransaction


class ItemWarehouseFilter(django_filters.FilterSet):
    warehouse = django_filters.UUIDFilter(field_name="warehouse_id")
    item = django_filters.UUIDFilter(field_name="item_id")
    item_code = django_filters.CharFilter(field_name="item__code", lookup_expr="iexact")
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = ItemWarehouse
        fields = ["warehouse", "item", "item_code", "in_stock"]

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(current_stock__gt=0) if value else queryset.filter(current_stock=0)


class StockTransactionFilter(django_filters.FilterSet):
    warehouse = django_filters.UUIDFilter(field_name="warehouse_id")
    transaction_type = django_filters.ChoiceFilter(choices=StockTransaction.TransactionType.choices)
    reference_type = django_filters.CharFilter()
    reference_id = django_filters.CharFilter()
    date_from = django_filters.DateFilter(field_name="transaction_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="transaction_date", lookup_expr="lte")

    class Meta:
        model = StockTransaction
        fields = ["warehouse", "transaction_type", "reference_type", "reference_id", "date_from", "date_to"]


class StockAdjustmentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=StockAdjustment.Status.choices)
    warehouse = django_filters.UUIDFilter(field_name="warehouse_id")

    class Meta:
        model = StockAdjustment
        fields = ["status", "warehouse"]
