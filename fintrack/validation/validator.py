"""
Two-Stage Validation Pipeline

DESIGN DECISION: A transaction intent is validated in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking (income/expense, integer cents, recurrence type)
- Required field presence
- Date parsing
- This catches malformed form submissions

STAGE 2 - SEMANTIC VALIDATION:
- Installment count present and inside the configured bounds
- Category type matches transaction type
- This catches logically impossible requests

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 only runs on data that already has the right shape

IMPORTANT: Validation NEVER silently fixes issues, and it always runs
before the store is touched, so a rejected intent leaves no records.
"""

from typing import Any, Optional, TypeVar, Union

import pydantic

from fintrack.config import get_settings
from fintrack.errors import ValidationError
from fintrack.models.transaction import (
    Category,
    RecurrenceType,
    TransactionIntent,
)
from fintrack.models.validation import ValidationIssue, ValidationResult

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def issues_from_pydantic(error: pydantic.ValidationError) -> list[ValidationIssue]:
    """One error-level issue per pydantic error."""
    issues = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type=item["type"],
            message=item["msg"],
            severity="error",
        ))
    return issues


def parse_model(model_cls: type[ModelT], data: Union[ModelT, dict[str, Any]]) -> ModelT:
    """
    Coerce caller input into model_cls.

    Raises:
        ValidationError: With one issue per pydantic error
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        issues = issues_from_pydantic(e)
        summary = "; ".join(f"{i.field}: {i.message}" for i in issues)
        raise ValidationError(f"Invalid {model_cls.__name__} - {summary}", issues) from e


class TransactionValidator:
    """
    Validates transaction intents through a two-stage pipeline.

    Stage 1: Schema validation
    Stage 2: Semantic validation
    """

    def __init__(
        self,
        min_installments: Optional[int] = None,
        max_installments: Optional[int] = None,
    ):
        """
        Initialize validator.

        Args:
            min_installments: Override the configured lower bound
            max_installments: Override the configured upper bound
        """
        if min_installments is None or max_installments is None:
            app = get_settings().app
            if min_installments is None:
                min_installments = app.min_installments
            if max_installments is None:
                max_installments = app.max_installments
        self.min_installments = min_installments
        self.max_installments = max_installments

    def _validate_schema(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
    ) -> tuple[Optional[TransactionIntent], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (intent_or_None, list_of_issues)
        """
        if isinstance(data, TransactionIntent):
            return data, []

        try:
            return TransactionIntent.model_validate(data), []
        except pydantic.ValidationError as e:
            return None, issues_from_pydantic(e)

    def _validate_semantic(
        self,
        intent: TransactionIntent,
        category: Optional[Category] = None,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Checks:
        - Installment count for installment mode
        - Category/transaction type agreement
        """
        issues = []

        if intent.recurrence_type == RecurrenceType.INSTALLMENT:
            count = intent.installments_count
            if count is None:
                issues.append(ValidationIssue(
                    field="installments_count",
                    issue_type="missing",
                    message="Installment count is required for installment transactions",
                    severity="error",
                    suggested_fix=f"Choose between {self.min_installments} and {self.max_installments} installments",
                ))
            elif count < self.min_installments:
                issues.append(ValidationIssue(
                    field="installments_count",
                    issue_type="out_of_range",
                    message=f"Minimum {self.min_installments} installments",
                    severity="error",
                    suggested_fix="Use a single transaction instead",
                ))
            elif count > self.max_installments:
                issues.append(ValidationIssue(
                    field="installments_count",
                    issue_type="out_of_range",
                    message=f"Maximum {self.max_installments} installments",
                    severity="error",
                ))
        elif intent.installments_count is not None:
            issues.append(ValidationIssue(
                field="installments_count",
                issue_type="ignored",
                message="Installment count only applies to installment transactions",
                severity="info",
            ))

        if category is not None:
            if intent.category_id is not None and category.id != intent.category_id:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="mismatch",
                    message="Category does not match the selected category id",
                    severity="error",
                ))
            if category.type != intent.type:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="type_mismatch",
                    message=f"Category '{category.name}' is for {category.type.value}, "
                            f"not {intent.type.value}",
                    severity="error",
                    suggested_fix="Pick a category of the same type or leave it empty",
                ))

        return issues

    def validate(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
    ) -> tuple[Optional[TransactionIntent], ValidationResult]:
        """
        Run complete two-stage validation.

        Returns:
            (intent, result) - intent is None when stage 1 failed
        """
        intent, schema_issues = self._validate_schema(data)
        if intent is None:
            return None, ValidationResult(
                schema_valid=False,
                semantic_valid=False,
                issues=schema_issues,
            )

        semantic_issues = self._validate_semantic(intent, category)
        return intent, ValidationResult(
            schema_valid=True,
            semantic_valid=not any(i.severity == "error" for i in semantic_issues),
            issues=semantic_issues,
        )

    def validate_or_raise(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
    ) -> TransactionIntent:
        """
        Validate and return the intent, or raise with every issue found.

        Raises:
            ValidationError: If any error-level issue exists
        """
        intent, result = self.validate(data, category)
        if intent is None or not result.is_valid:
            raise ValidationError(self.get_user_friendly_summary(result), result.issues)
        return intent

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Join error messages into one line for a toast."""
        errors = [
            f"{issue.field}: {issue.message}"
            for issue in result.issues
            if issue.severity == "error"
        ]
        if not errors:
            return "Transaction is valid"
        return "Invalid transaction - " + "; ".join(errors)
