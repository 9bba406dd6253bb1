from decimal import Decimal

from django.conf import settings

from usage.models import OperationType

# credits charged per request (per image for image generation)
DEFAULT_CREDIT_COSTS = {
    OperationType.TEXT_GENERATION: 1,
    OperationType.IMAGE_GENERATION: 25,
    OperationType.TEXT_TO_SPEECH: 5,
    OperationType.VIDEO_GENERATION: 50,
}


def get_credit_costs() -> dict:
    """Defaults overridden by settings.AI_CREDIT_COSTS (keys are operation type values)."""
    costs = dict(DEFAULT_CREDIT_COSTS)
    for key, value in (getattr(settings, "AI_CREDIT_COSTS", None) or {}).items():
        costs[OperationType(key)] = int(value)
    return costs


def calculate_credits_consumed(operation_type, count: int = 1) -> int:
    try:
        op = OperationType(operation_type)
    except ValueError:
        return 1
    cost = get_credit_costs()[op]
    if op == OperationType.IMAGE_GENERATION:
        return cost * max(count, 1)
    return cost


# provider prices in USD; the platform bills them with PLATFORM_PRICING_MARGIN
TEXT_PRICE_PER_M_INPUT = Decimal("0.10")
TEXT_PRICE_PER_M_OUTPUT = Decimal("0.40")
IMAGE_PRICE_BY_MODEL = {
    "imagen-3": Decimal("0.03"),
    "imagen-4": Decimal("0.04"),
    "imagen-4-ultra": Decimal("0.06"),
}
TTS_PRICE_PER_CHARACTER = Decimal("0.000016")
PLATFORM_PRICING_MARGIN = Decimal("2.0")

COST_QUANT = Decimal("0.000001")


def calculate_operation_cost(operation_type, model: str = "", *, input_tokens: int = 0, output_tokens: int = 0,
                             image_count: int = 0, character_count: int = 0) -> tuple[Decimal, Decimal]:
    """
    (raw provider cost, platform cost) of one operation. Video has no
    published price yet and costs 0.
    """
    try:
        op = OperationType(operation_type)
    except ValueError:
        return Decimal("0"), Decimal("0")

    if op == OperationType.TEXT_GENERATION:
        raw = (Decimal(input_tokens) * TEXT_PRICE_PER_M_INPUT
               + Decimal(output_tokens) * TEXT_PRICE_PER_M_OUTPUT) / Decimal(1_000_000)
    elif op == OperationType.IMAGE_GENERATION:
        raw = Decimal(image_count) * IMAGE_PRICE_BY_MODEL.get(model, IMAGE_PRICE_BY_MODEL["imagen-3"])
    elif op == OperationType.TEXT_TO_SPEECH:
        raw = Decimal(character_count) * TTS_PRICE_PER_CHARACTER
    else:
        raw = Decimal("0")

    raw = raw.quantize(COST_QUANT)
    return raw, (raw * PLATFORM_PRICING_MARGIN).quantize(COST_QUANT)
