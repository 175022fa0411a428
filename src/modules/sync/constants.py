"""Channel names used by the synchronization broadcaster."""

ADMIN_CHANNEL = "admin"

ORDER_CHANNEL = "order:{}"
STORE_CHANNEL = "store:{}"
USER_CHANNEL = "user:{}"
PRODUCT_CHANNEL = "product:{}"

REVISION_CACHE_KEY = "sync:revision:{}"

ORDERS_TOPIC = "orders"
INVENTORY_TOPIC = "inventory"
