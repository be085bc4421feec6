from prometheus_client import Counter, Histogram, Gauge

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Checkout duration in seconds"
)

ecomm_function_calls_total = Counter(
    "ecomm_function_calls_total",
    "Function tags executed on behalf of the generation service",
    ["function", "outcome"] # outcome: 'success' or an error kind
)

ecomm_generation_requests_total = Counter(
    "ecomm_generation_requests_total",
    "Generation service calls",
    ["round", "outcome"] # round: '1', '2'; outcome: 'success', 'failed'
)

ecomm_llm_tokens_total = Counter(
    "ecomm_llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"] # Labels: type='prompt' or 'completion'
)

ecomm_active_carts = Gauge(
    "ecomm_active_carts",
    "Number of currently active carts"
)

ecomm_outbound_messages_total = Counter(
    "ecomm_outbound_messages_total",
    "Messages sent to customers over the channel",
    ["kind", "outcome"] # kind: 'text', 'media'
)
