"""
Validation Models

Results of checking a cycle's records before they are settled.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Record kind or field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_user', 'outside_cycle', 'duplicate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    record_id: Optional[str] = Field(
        default=None,
        description="Record the issue was found on, if any"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Reference checks (records point at the cycle and known users)
    Stage 2: Semantic checks (dates, duplicates, suspicious values)
    """

    cycle_id: str
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    reference_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="No error-level issues in either stage"
    )

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
