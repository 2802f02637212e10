"""Domain constants shared by the controller, routers and settings defaults."""

DEFAULT_BASE_CURRENCY: str = "USD"
LAST_RESULT_KEY: str = "lastConversionAmount"

# Alert copy shown to the user
MSG_FETCH_CURRENCIES_FAILED = "Failed to fetch currencies. Please try again later."
MSG_CONVERT_FAILED = "Failed to convert currency. Please try again later."
MSG_INVALID_AMOUNT = "Please enter a valid numeric amount."
MSG_BUSY = "A conversion is already in progress."
