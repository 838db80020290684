"""Form validation package."""

from lifeledger.validation.validator import FormValidator

__all__ = ["FormValidator"]
