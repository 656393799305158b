"""Common Pydantic schemas"""

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response schema"""
    error: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    trace_id: Optional[str] = Field(None, description="Request trace ID")


def raise_for_results(results: List[Any]) -> None:
    """Turn failed constraint checks into a pydantic validation error"""
    if results:
        raise ValueError("; ".join(result.message for result in results))
