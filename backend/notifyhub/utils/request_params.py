"""Collect loosely-typed request parameters from query, form and JSON body."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


@dataclass
class RequestParams:
    """Parameters of one request, kept per source."""
    headers: Any
    query: Dict[str, str] = field(default_factory=dict)
    form: Dict[str, str] = field(default_factory=dict)
    json: Dict[str, Any] = field(default_factory=dict)

    @property
    def body(self) -> Dict[str, Any]:
        """JSON body if there is one, otherwise the form fields."""
        return self.json or self.form

    @property
    def merged(self) -> Dict[str, Any]:
        """All parameters, later sources winning: query, form, JSON."""
        return {**self.query, **self.form, **self.json}

    def first(self, *names: str, source: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """Return the first non-empty value among the given names."""
        params = self.merged if source is None else source
        for name in names:
            value = params.get(name)
            if value is None or value == "":
                continue
            return value if isinstance(value, str) else str(value)
        return None


async def collect_params(request: Request) -> RequestParams:
    params = RequestParams(headers=request.headers, query=dict(request.query_params))

    if request.method not in ("POST", "PUT", "PATCH"):
        return params

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        params.form = {k: v for k, v in form.items() if isinstance(v, str)}
        return params

    raw = await request.body()
    if raw:
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring request body that is not JSON")
        else:
            if isinstance(payload, dict):
                params.json = payload
    return params
