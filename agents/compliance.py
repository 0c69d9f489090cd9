"""
Possession-limit compliance checks for cannabis orders.

A proposed order is added to what the patient already holds and compared
against the fixed Maryland ceilings. Only the first violated limit is named in
the message (flower, then concentrate, then THC).
"""

import logging
import math
from collections.abc import Iterable

from config.config import ComplianceLimits
from models.compliance import ComplianceCheck, PossessionRecord
from models.delivery import DeliveryItem
from models.enums import ItemType
from models.errors import MalformedInputError

logger = logging.getLogger(__name__)

LEGAL_LIMITS = ComplianceLimits()
COMPLIANT_MESSAGE = "Order is compliant with MMCC regulations"


def _parse_number(raw: str, suffix: str, what: str) -> float:
    if not isinstance(raw, str):
        raise MalformedInputError(f"{what} must be a string like '3.5{suffix}', got {raw!r}")
    text = raw.strip()
    if text.lower().endswith(suffix):
        text = text[: -len(suffix)].strip()
    try:
        value = float(text)
    except ValueError as e:
        raise MalformedInputError(f"Cannot parse {what} from {raw!r}") from e
    if not math.isfinite(value) or value < 0:
        raise MalformedInputError(f"{what} must be a non-negative number, got {raw!r}")
    return value


def parse_grams(quantity: str) -> float:
    """Parse a gram quantity such as ``"3.5g"`` or ``"7"``."""
    return _parse_number(quantity, "g", "quantity")


def parse_thc_percent(thc: str) -> float:
    """Parse a THC percentage such as ``"20%"``."""
    value = _parse_number(thc, "%", "THC percentage")
    if value > 100:
        raise MalformedInputError(f"THC percentage cannot exceed 100, got {thc!r}")
    return value


def thc_percentage_to_mg(thc_percent: float, grams: float) -> float:
    return (thc_percent / 100) * grams * 1000


def check_compliance(
    possession: PossessionRecord | None,
    items: Iterable[DeliveryItem],
    limits: ComplianceLimits = LEGAL_LIMITS,
) -> ComplianceCheck:
    """
    Check whether adding ``items`` to ``possession`` stays within ``limits``.

    Args:
        possession: What the patient already holds; ``None`` means nothing.
        items: Items of the proposed order.
        limits: Possession ceilings.

    Returns:
        ComplianceCheck with one flag per limit, the running totals and a
        message naming the first violation (or stating compliance).

    Raises:
        MalformedInputError: If a quantity or THC string cannot be parsed.
    """
    possession = possession or PossessionRecord()
    total_flower = possession.flower_g
    total_concentrate = possession.concentrate_g
    total_thc = possession.thc_mg

    for item in items:
        grams = parse_grams(item.quantity)
        if item.item_type == ItemType.FLOWER:
            total_flower += grams
        elif item.item_type == ItemType.CONCENTRATE:
            total_concentrate += grams
            total_thc += thc_percentage_to_mg(parse_thc_percent(item.thc), grams)
        elif item.item_type == ItemType.EDIBLE:
            total_thc += thc_percentage_to_mg(parse_thc_percent(item.thc), grams)

    within_flower = total_flower <= limits.flower_grams
    within_concentrate = total_concentrate <= limits.concentrate_grams
    within_thc = total_thc <= limits.thc_mg

    if not within_flower:
        message = f"Exceeds flower limit by {total_flower - limits.flower_grams:.1f}g"
    elif not within_concentrate:
        message = f"Exceeds concentrate limit by {total_concentrate - limits.concentrate_grams:.1f}g"
    elif not within_thc:
        message = f"Exceeds THC limit by {total_thc - limits.thc_mg:.0f}mg"
    else:
        message = COMPLIANT_MESSAGE

    if message != COMPLIANT_MESSAGE:
        logger.info(f"Compliance check failed: {message}")

    return ComplianceCheck(
        within_flower_limit=within_flower,
        within_concentrate_limit=within_concentrate,
        within_thc_limit=within_thc,
        message=message,
        total_flower_g=total_flower,
        total_concentrate_g=total_concentrate,
        total_thc_mg=total_thc,
    )
