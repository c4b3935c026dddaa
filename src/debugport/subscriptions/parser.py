"""Rule document parsing and the ephemeral identity normalization.

Parsing and identity pinning are separate steps: ``parse_subscription``
only checks the document shape, ``pin_memory_identity`` then overwrites
the identity fields of whatever was parsed.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from debugport.domain.models import (
    MEMORY_SUBS_AUTHOR,
    MEMORY_SUBS_ID,
    MEMORY_SUBS_NAME,
    MEMORY_SUBS_VERSION,
    RawSubscription,
)

logger = logging.getLogger(__name__)


class SubscriptionParseError(Exception):
    """Raised when a rule document cannot be parsed."""


def parse_subscription(text: str, json5: bool = False) -> RawSubscription:
    """Parse a rule document.

    The parse is lenient: control characters inside strings are accepted
    and unknown keys are kept.

    Raises:
        SubscriptionParseError: If the text is not a valid rule document.
    """
    if json5:
        raise SubscriptionParseError("JSON5 rule documents are not supported")
    try:
        data = json.loads(text, strict=False)
    except json.JSONDecodeError as e:
        raise SubscriptionParseError(f"Invalid rule document: {e}") from e
    if not isinstance(data, dict):
        raise SubscriptionParseError("Rule document must be a JSON object")
    try:
        return RawSubscription.model_validate(data)
    except ValidationError as e:
        raise SubscriptionParseError(f"Invalid rule document: {e}") from e


def pin_memory_identity(subscription: RawSubscription) -> RawSubscription:
    """Return ``subscription`` under the reserved ephemeral identity."""
    return subscription.model_copy(
        update={
            "id": MEMORY_SUBS_ID,
            "name": MEMORY_SUBS_NAME,
            "version": MEMORY_SUBS_VERSION,
            "author": MEMORY_SUBS_AUTHOR,
        }
    )
