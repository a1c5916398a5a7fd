"""Extra OpenAPI metadata: tag descriptions and the documented 429 on owner search."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from petclinic.core.config import settings


RATE_LIMITED_RESPONSE: Dict[str, Any] = {
    "description": "Too many requests from this client in the current window.",
    "content": {
        "application/json": {
            "schema": {
                "type": "object",
                "properties": {
                    "error": {"type": "string", "example": "Rate limit exceeded. Try again later."},
                    "maxRequests": {"type": "integer", "example": 5},
                    "windowSizeMinutes": {"type": "integer", "example": 1},
                },
                "required": ["error", "maxRequests", "windowSizeMinutes"],
            }
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Wrap `app.openapi` so the generated schema carries tags and the 429."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Analytics",
                "description": "Concurrent pet statistics and per-pet reports.",
            },
            {
                "name": "Owners",
                "description": "Owner search and pet listing.",
            },
            {
                "name": "Health",
                "description": "Liveness and readiness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        if settings.rate_limit.enabled:
            path_item = schema.get("paths", {}).get(settings.rate_limit.protected_route, {})
            for method_obj in path_item.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("responses", {}).setdefault("429", RATE_LIMITED_RESPONSE)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
