"""Validation utilities for the VPP aggregation core."""

from typing import Any, Union, Type, Tuple

from .exceptions import ValidationError, ValidationTypeError


class Validator:
    """Base validator class."""

    @staticmethod
    def validate_type(value: Any, expected_type: Union[Type, Tuple[Type, ...]]) -> None:
        """Validate value type."""
        if not isinstance(value, expected_type):
            name = getattr(expected_type, "__name__", str(expected_type))
            raise ValidationTypeError(
                f"Expected type {name}, got {type(value).__name__}"
            )


class EnergyValidator(Validator):
    """Validator for energy quantities and identifiers."""

    @staticmethod
    def validate_identifier(identifier: int) -> None:
        """Validate a device, report, plant or proposal identifier.

        Only the type is checked; unknown ids are rejected by the lookup.
        """
        if isinstance(identifier, bool):
            raise ValidationTypeError("Identifier must be an integer, got bool")
        Validator.validate_type(identifier, int)

    @staticmethod
    def validate_energy(energy_kwh: int) -> None:
        """Validate an integral energy quantity in kWh."""
        if isinstance(energy_kwh, bool):
            raise ValidationTypeError("Energy must be an integer, got bool")
        Validator.validate_type(energy_kwh, int)


def validate_principal(principal: str) -> None:
    """Validate a caller or collaborator identity."""
    if not principal or not isinstance(principal, str):
        raise ValidationError("Principal must be a non-empty string")
