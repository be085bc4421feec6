from .setup import setup_observability, configure_logging
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_function_calls_total,
    ecomm_generation_requests_total,
    ecomm_llm_tokens_total,
    ecomm_active_carts,
    ecomm_outbound_messages_total,
)
