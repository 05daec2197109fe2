"""
Extraction of the alert context from monitoring webhook payloads.

Monitoring systems wrap the alert context differently depending on the
alert schema and on whatever relays the webhook. Instead of searching the
whole document, the extractor tries a fixed, ordered list of known nesting
paths and validates the first object it finds.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from alertcapture.exceptions import AlertValidationError
from alertcapture.models.alert import AlertContext
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)

ContextPath = Tuple[str, ...]

# Ordered: the first path that resolves to an object wins
KNOWN_CONTEXT_PATHS: Tuple[ContextPath, ...] = (
    ("context",),
    ("data", "context"),
    ("body", "context"),
    ("data", "body", "context"),
    # Webhook envelope: {"WebhookName": ..., "RequestBody": {"status", "context", "properties"}}
    ("RequestBody", "context"),
    ("requestBody", "context"),
)


class AlertContextExtractor:
    """Parses and validates the alert context carried by a webhook payload."""

    def __init__(self, context_paths: Sequence[ContextPath] = KNOWN_CONTEXT_PATHS) -> None:
        self.context_paths = tuple(context_paths)

    def extract(self, payload: Dict[str, Any]) -> AlertContext:
        """
        Build an AlertContext from a decoded webhook payload.

        Args:
            payload: Decoded JSON body of the webhook request

        Returns:
            Validated, immutable AlertContext

        Raises:
            AlertValidationError: If no context object is found or any required
                field is missing or blank
        """
        required = AlertContext.get_required_fields()
        raw_context, path = self.find_context(payload)
        if raw_context is None:
            logger.error("Insufficient context sent by webhook: no context object found")
            raise AlertValidationError(
                "Insufficient context sent by webhook: no context object found",
                missing_fields=required,
                context={"searched_paths": [".".join(p) for p in self.context_paths]},
            )

        missing = [
            field for field in required
            if not isinstance(raw_context.get(field), str) or not raw_context[field].strip()
        ]
        if missing:
            received = "\n".join(f"{field}: {raw_context.get(field)}" for field in required)
            logger.error(f"Insufficient context sent by webhook:\n{received}")
            raise AlertValidationError(
                f"Insufficient context sent by webhook: missing {', '.join(missing)}",
                missing_fields=missing,
                context={"context_path": ".".join(path)},
            )

        try:
            context = AlertContext(**{field: raw_context[field].strip() for field in required})
        except ValidationError as e:
            raise AlertValidationError(
                f"Invalid alert context: {str(e)}",
                context={"context_path": ".".join(path)},
            ) from e

        logger.debug(f"Context from webhook parsed ({'.'.join(path)}):\n{context.describe()}")
        return context

    def find_context(self, payload: Any) -> Tuple[Optional[Dict[str, Any]], ContextPath]:
        """Return the first context object found along the known paths, with its path."""
        for path in self.context_paths:
            node = payload
            for key in path:
                if not isinstance(node, dict):
                    node = None
                    break
                node = node.get(key)
            if isinstance(node, dict):
                return node, path
        return None, ()

    @staticmethod
    def required_fields() -> List[str]:
        return AlertContext.get_required_fields()
