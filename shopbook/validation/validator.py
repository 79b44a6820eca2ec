"""
Two-Stage Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Numbers that parse, are finite and are positive
- This catches empty fields and typos in the amount boxes

STAGE 2 - SEMANTIC VALIDATION:
- Customer details for credit sales
- Flavour for flavoured refill series
- Phone format (when a digit count is configured)
- This catches sales that are well-formed but incomplete

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the cashier can correct the form. A rejected form
changes nothing in the books.
"""

import math
from typing import Optional, Union

from shopbook.config import AppSettings, get_settings
from shopbook.errors import ValidationError
from shopbook.models.records import (
    FLAVOURED_SERIES,
    ExpenseCategory,
    SaleDraft,
    ValidationIssue,
    ValidationResult,
)


RawNumber = Union[str, int, float, None]


def parse_amount(
    raw: RawNumber,
    field: str,
    label: Optional[str] = None,
    money: bool = False,
) -> tuple[Optional[float], Optional[ValidationIssue]]:
    """
    Parse a user-typed number.

    Accepts numbers and numeric strings (thousands separators allowed).
    With money=True the value is rounded to cents before the positivity
    check, so "0.004" is rejected and "33.333" becomes 33.33.
    Returns (value, None) on success or (None, issue) when the value is
    missing, not a number, not finite, or not greater than zero.
    """
    label = label or field.replace("_", " ").capitalize()

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None, ValidationIssue(
            field=field,
            issue_type="missing",
            message=f"{label} is required",
            suggested_fix=f"Enter the {label.lower()}",
        )

    if isinstance(raw, bool):
        value = math.nan
    elif isinstance(raw, (int, float)):
        value = float(raw)
    else:
        try:
            value = float(raw.strip().replace(",", ""))
        except ValueError:
            value = math.nan

    if not math.isfinite(value):
        return None, ValidationIssue(
            field=field,
            issue_type="invalid_format",
            message=f"{label} must be a number",
            suggested_fix="Use digits only, e.g. 250 or 1.5",
        )

    if money:
        value = round(value, 2)

    if value <= 0:
        return None, ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} must be greater than zero",
        )

    return value, None


def _raise_if_invalid(result: ValidationResult) -> None:
    if result.is_valid:
        return
    errors = [i for i in result.issues if i.severity == "error"]
    if len(errors) == 1:
        message = errors[0].message
    else:
        message = "Please fix the following: " + "; ".join(i.message for i in errors)
    raise ValidationError(message, issues=errors)


class SaleValidator:
    """
    Validates the sale form.

    Stage 1: Schema validation (item, quantity, amount)
    Stage 2: Semantic validation (credit customer, flavour, phone)
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: SaleDraft,
    ) -> tuple[dict[str, float], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (parsed_numbers, list_of_issues)
        """
        issues = []
        parsed = {}

        if not draft.item_name:
            issues.append(ValidationIssue(
                field="item_name",
                issue_type="missing",
                message=(
                    "Item name is required"
                    if draft.sale_type.uses_custom_item
                    else "Please select an item"
                ),
            ))

        for field, raw in (("quantity", draft.quantity), ("amount", draft.amount)):
            value, issue = parse_amount(raw, field, money=field == "amount")
            if issue:
                issues.append(issue)
            else:
                parsed[field] = value

        return parsed, issues

    def _validate_semantic(
        self,
        draft: SaleDraft,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Returns: list_of_issues
        """
        issues = []

        if draft.is_credit:
            if not draft.customer_name:
                issues.append(ValidationIssue(
                    field="customer_name",
                    issue_type="missing",
                    message="Customer name is required for credit sales",
                ))
            if not draft.customer_phone:
                issues.append(ValidationIssue(
                    field="customer_phone",
                    issue_type="missing",
                    message="Customer phone is required for credit sales",
                ))
            elif self._settings.phone_digit_count is not None:
                digits = self._settings.phone_digit_count
                phone = draft.customer_phone
                if not phone.isdigit() or len(phone) != digits:
                    issues.append(ValidationIssue(
                        field="customer_phone",
                        issue_type="invalid_format",
                        message=f"Phone number must be exactly {digits} digits",
                        suggested_fix="Remove spaces and dashes",
                    ))
        elif draft.customer_name or draft.customer_phone:
            issues.append(ValidationIssue(
                field="customer_name",
                issue_type="ignored",
                message="Customer details are not kept for cash sales",
                severity="warning",
            ))

        if (
            draft.sale_type.has_flavor
            and draft.item_name in FLAVOURED_SERIES
            and not draft.flavor
        ):
            issues.append(ValidationIssue(
                field="flavor",
                issue_type="missing",
                message=f"Please select a flavour for {draft.item_name}",
            ))

        return issues

    def validate(
        self,
        draft: SaleDraft,
    ) -> ValidationResult:
        """
        Run both validation stages.

        Stage 2 runs even when stage 1 fails, so the cashier sees every
        problem with the form at once.
        """
        _, schema_issues = self._validate_schema(draft)
        semantic_issues = self._validate_semantic(draft)
        return ValidationResult(issues=schema_issues + semantic_issues)

    def clean(
        self,
        draft: SaleDraft,
    ) -> SaleDraft:
        """
        Validate and return a copy with quantity and amount as floats.

        Customer details are blanked for cash sales.

        Raises:
            ValidationError: if any error-level issue was found
        """
        parsed, schema_issues = self._validate_schema(draft)
        result = ValidationResult(issues=schema_issues + self._validate_semantic(draft))
        _raise_if_invalid(result)

        update = dict(parsed)
        if not draft.is_credit:
            update.update(customer_name="", customer_phone="")
        if not draft.sale_type.has_flavor:
            update["flavor"] = None
        return draft.model_copy(update=update)


class ExpenseValidator:
    """Validates the expense form."""

    def validate(
        self,
        description: str,
        amount: RawNumber,
        category: Union[ExpenseCategory, str, None] = None,
    ) -> ValidationResult:
        issues = []

        if not (description or "").strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            ))

        _, issue = parse_amount(amount, "amount", money=True)
        if issue:
            issues.append(issue)

        if category is not None:
            try:
                ExpenseCategory(category)
            except ValueError:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="invalid_value",
                    message=f"Unknown expense category: {category}",
                    suggested_fix=", ".join(c.value for c in ExpenseCategory),
                ))

        return ValidationResult(issues=issues)

    def clean(
        self,
        description: str,
        amount: RawNumber,
        category: Union[ExpenseCategory, str, None] = None,
    ) -> tuple[str, float, ExpenseCategory]:
        """
        Raises:
            ValidationError: if the form is incomplete
        """
        _raise_if_invalid(self.validate(description, amount, category))
        value, _ = parse_amount(amount, "amount", money=True)
        return (
            description.strip(),
            value,
            ExpenseCategory(category) if category is not None else ExpenseCategory.SUPPLIES,
        )


def get_user_friendly_summary(
    result: ValidationResult,
) -> str:
    """
    Generate a user-friendly summary of validation results.

    This is what we show to the cashier.
    """
    if not result.issues:
        return "All checks passed."

    lines = []
    errors = [i for i in result.issues if i.severity == "error"]
    warnings = [i for i in result.issues if i.severity == "warning"]

    if errors:
        lines.append("Please fix the following:")
        for issue in errors:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     ({issue.suggested_fix})")

    if warnings:
        if lines:
            lines.append("")
        lines.append("Please note:")
        for issue in warnings:
            lines.append(f"   • {issue.message}")

    return "\n".join(lines)
