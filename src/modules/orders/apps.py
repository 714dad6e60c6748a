from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import ORDER_EVENTS, CancellationRequested
        from modules.orders.handlers import (
            cancellation_requested_handler,
            order_audit_handler,
        )
        from shared.infrastructure.bus import event_bus

        for event_class in ORDER_EVENTS:
            event_bus.subscribe(event_class, order_audit_handler)
        event_bus.subscribe(CancellationRequested, cancellation_requested_handler)
