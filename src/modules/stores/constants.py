"""Store domain constants."""

STORE_CODE_WIDTH = 3
MAX_STORE_CODE = 999
