#!/usr/bin/env python3
"""
Response Format helpers for pnode-monitor
Simple, consistent JSON structure for HTTP and CLI output
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Sequence


def to_json_list(items: Sequence[Any]) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in items]


def list_response(key: str, items: Sequence[Any]) -> Dict[str, Any]:
    """{key: [...], count: n} as returned by the list endpoints"""
    return {key: to_json_list(items), "count": len(items)}


def error_response(error_message: str) -> Dict[str, Any]:
    """Opaque error body returned to clients"""
    return {"error": error_message}


def standard_response(data: Any, operation: str, **meta_fields) -> Dict[str, Any]:
    """
    Wrap CLI results with metadata

    Args:
        data: JSON-ready result
        operation: Command that produced it
        **meta_fields: Additional metadata fields

    Returns:
        Dictionary with data/meta structure
    """
    meta = {
        "status": "success",
        "timestamp": datetime.now().isoformat(),
        "operation": operation,
    }
    meta.update(meta_fields)
    return {"data": data, "meta": meta}


def format_json(response: Any, pretty: bool = False) -> str:
    """Format response as JSON string"""
    if pretty:
        return json.dumps(response, indent=2, default=str)
    return json.dumps(response, separators=(',', ':'), default=str)
