import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}".format(
        user=os.getenv("POSTGRES_USER", "postgres"),
        password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        host=os.getenv("POSTGRES_HOST", "localhost"),  # In Docker, this will be 'postgres'
        port=os.getenv("POSTGRES_PORT", "5433"),
        name=os.getenv("POSTGRES_DB", "ecommerce"),
    ),
)
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

# Generation service
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "30"))

# Conversation history window
HISTORY_MAX_MESSAGES = int(os.getenv("HISTORY_MAX_MESSAGES", "10"))
HISTORY_MAX_BYTES = int(os.getenv("HISTORY_MAX_BYTES", "8000"))

# Messaging channel
SERVER_BASE_URL = os.getenv("SERVER_BASE_URL", "http://localhost:8000").rstrip("/")
CHANNEL_GATEWAY_URL = os.getenv("CHANNEL_GATEWAY_URL", "http://localhost:3011").rstrip("/")
CHANNEL_GATEWAY_TOKEN = os.getenv("CHANNEL_GATEWAY_TOKEN", "")
MAX_MEDIA_PER_REPLY = int(os.getenv("MAX_MEDIA_PER_REPLY", "5"))
MEDIA_SEND_DELAY_SECONDS = float(os.getenv("MEDIA_SEND_DELAY_SECONDS", "0.8"))

# Store
STORE_NAME = os.getenv("STORE_NAME", "Our Store")
ADMIN_PHONE_NUMBER = os.getenv("ADMIN_PHONE_NUMBER", "")
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "94")
DELIVERY_FEE = float(os.getenv("DELIVERY_FEE", "500"))
FREE_DELIVERY_ABOVE = float(os.getenv("FREE_DELIVERY_ABOVE", "10000"))
DEFAULT_PAYMENT_METHOD = "Cash on Delivery"

# Internal API keys accepted from the channel gateway and the dashboard.
# Comma-separated so a key can be rotated without downtime.
INTERNAL_API_KEYS = [k.strip() for k in os.getenv("INTERNAL_API_KEY", "").split(",") if k.strip()]
