from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.inventory"
    label = "inventory"

    def ready(self) -> None:
        from modules.inventory.events import StockChanged
        from modules.inventory.handlers import stock_changed_handler
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(StockChanged, stock_changed_handler)
