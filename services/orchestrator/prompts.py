import json
from typing import Iterable

from shared.config import settings

from .registry import FunctionResult, FunctionSpec

CONTEXT_HEADER = "--- Retrieved Data FROM DATABASE ---"

DEFAULT_BASE_PROMPT = f"""
You are the friendly shopping assistant for {settings.STORE_NAME}, chatting with customers over a messaging app.
Keep replies short and clear, use bullet points and a few emojis, and never invent products, prices,
stock levels or order numbers.
""".strip()


def function_catalog_prompt(specs: Iterable[FunctionSpec]) -> str:
    customer = [s for s in specs if not s.admin]
    admin = [s for s in specs if s.admin]

    lines = [
        "--- SPECIAL CAPABILITIES ---",
        "You can read and change real store data by writing function tags. The system runs every tag",
        "in your reply and sends you the results, then you answer the customer using only that data.",
        "",
    ]
    lines += [f"{i}. {s.usage} - {s.description}" for i, s in enumerate(customer, start=1)]
    if admin:
        lines += ["", "ADMIN-ONLY FUNCTIONS (this user is the store admin):"]
        lines += [f"{i}. {s.usage} - {s.description}" for i, s in enumerate(admin, start=len(customer) + 1)]
    lines += [
        "",
        "Rules:",
        "- Use the EXACT syntax [FUNCTION:function_name:args]. Text outside the brackets does nothing.",
        "- Don't ask permission for cart actions; call the function.",
        "- For any product question call a function first; never describe products from memory.",
        "- Collect name, address and city before calling checkout.",
        "- When showing a single product, use: **Name** - Rs. PRICE, the description, "
        "**Stock**: QTY available, and image_url: URL if the product has an image.",
        "- For general questions, respond normally without functions.",
    ]
    return "\n".join(lines)


def system_prompt(base_prompt: str | None, specs: Iterable[FunctionSpec]) -> str:
    return f"{base_prompt or DEFAULT_BASE_PROMPT}\n\n{function_catalog_prompt(specs)}"


def result_context(results: list[FunctionResult], user_message: str) -> str:
    """Round-two prompt: every function result as JSON plus formatting instructions."""
    blocks = [CONTEXT_HEADER, "CRITICAL: YOU MUST USE ONLY THE DATA BELOW. DO NOT INVENT ANY PRODUCTS OR DETAILS.", ""]
    for result in results:
        label = result.name.upper()
        if result.success:
            payload = {"message": result.message, "data": result.data}
            blocks.append(f"{label}: {json.dumps(payload, indent=2, default=str, ensure_ascii=False)}")
        else:
            blocks.append(f"{label}: Error ({result.error_kind.value}) - {result.error}")
    blocks += [
        "",
        "If the data is empty, tell the user nothing is available. DO NOT make up products.",
        "FORMATTING RULES:",
        f"- DO NOT include \"{CONTEXT_HEADER}\", raw JSON or labels like \"SEARCH_PRODUCTS:\" in your response.",
        "- Use order numbers EXACTLY as they appear in the data.",
        "- The functions have ALREADY been executed. DO NOT write any [FUNCTION:...] tag.",
        "",
        f"User's question: \"{user_message}\"",
        "",
        "Provide a helpful response using ONLY the data shown above:",
    ]
    return "\n".join(blocks)
