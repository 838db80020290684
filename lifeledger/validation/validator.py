"""
Form Validation

DESIGN DECISION: A submission is checked in full before any store is
touched. Validation has two kinds of findings:

ERRORS:
- Missing or unparseable calendar date
- These abort the write (the writer raises InvalidDate)

WARNINGS:
- Missing title, end time before start time, zero-amount expenses
- Recurrence requested where it has no effect
- These are reported but never block the write

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and leaves the decision to the caller.
"""

from lifeledger.models.event import (
    EventCategory,
    FormInput,
    FormValidationResult,
    RecurrenceRule,
    ValidationIssue,
)
from lifeledger.normalization.dates import extract_calendar_date, extract_clock_time


class FormValidator:
    """
    Validates a FormInput ahead of routing.

    Stateless; safe to share between requests.
    """

    def _validate_date(self, form: FormInput) -> list[ValidationIssue]:
        issues = []

        if not form.date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
                suggested_fix="Pick a date for this entry",
            ))
        elif extract_calendar_date(form.date) is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date ({form.date}) is not a valid YYYY-MM-DD calendar date",
                severity="error",
                suggested_fix="Use the YYYY-MM-DD format",
            ))

        return issues

    def _validate_times(self, form: FormInput) -> list[ValidationIssue]:
        if form.is_all_day:
            return []

        issues = []
        start = extract_clock_time(form.start_time)
        end = extract_clock_time(form.end_time)

        for field, raw, parsed in (
            ("start_time", form.start_time, start),
            ("end_time", form.end_time, end),
        ):
            if raw and parsed is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="invalid_format",
                    message=f"Time ({raw}) is not in HH:MM format",
                    severity="warning",
                    suggested_fix="The time will be left empty",
                ))

        # Zero-padded HH:MM compares correctly as text
        if start and end and end < start:
            issues.append(ValidationIssue(
                field="end_time",
                issue_type="inconsistent",
                message=f"End time ({end}) is before start time ({start})",
                severity="warning",
                suggested_fix="Please verify both times",
            ))

        return issues

    def _validate_content(self, form: FormInput) -> list[ValidationIssue]:
        issues = []

        if not form.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="No title was entered",
                severity="warning",
            ))

        if form.category == EventCategory.EXPENSE:
            if form.amount == 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Expense amount is zero",
                    severity="warning",
                    suggested_fix="Please verify this amount is correct",
                ))
            if form.recurrence != RecurrenceRule.NONE:
                issues.append(ValidationIssue(
                    field="recurrence",
                    issue_type="ignored",
                    message="Ledger entries do not repeat; recurrence is ignored",
                    severity="info",
                ))

        return issues

    def validate(self, form: FormInput) -> FormValidationResult:
        """
        Run every check against a submission.

        Returns:
            FormValidationResult with all issues found
        """
        issues = (
            self._validate_date(form)
            + self._validate_times(form)
            + self._validate_content(form)
        )

        return FormValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )
