"""
SkewLattice - Custom Exceptions Module

This module defines custom exception classes for specific error cases
in the SkewLattice package.
"""


class SkewLatticeError(Exception):
    """Base exception for all SkewLattice errors.

    All custom exceptions should inherit from this class to allow
    catching any SkewLattice-specific error.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class SingularMatrixError(SkewLatticeError):
    """Raised when an affine map cannot be inverted."""

    def __init__(self, determinant: float) -> None:
        """Initialize the exception.

        Args:
            determinant: Determinant of the offending 2x2 linear part
        """
        self.determinant = determinant
        super().__init__("Affine matrix is singular", details=f"det={determinant:.3g}")


class ValidationError(SkewLatticeError):
    """Raised when input validation fails."""

    def __init__(
        self,
        field: str,
        value: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            field: Name of the field that failed validation
            value: Optional value that failed validation
            reason: Optional reason for the validation failure
        """
        self.field = field
        self.value = value
        self.reason = reason

        msg = f"Validation error for '{field}'"
        if reason:
            msg += f": {reason}"

        super().__init__(msg, details=f"value={value}" if value is not None else None)


class ConfigurationError(SkewLatticeError):
    """Raised when there's a configuration-related error."""

    def __init__(self, setting_name: str | None = None, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            setting_name: Optional name of the problematic setting
            reason: Optional reason for the error
        """
        self.setting_name = setting_name
        self.reason = reason

        if setting_name:
            msg = f"Configuration error for '{setting_name}'"
        else:
            msg = "Configuration error"

        if reason:
            msg += f": {reason}"

        super().__init__(msg)


class UnknownInterpolationError(SkewLatticeError):
    """Raised when an interpolation kernel identifier is not recognised."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available or []

        msg = f"Unknown interpolation '{name}'"
        if available:
            msg += f". Available: {', '.join(available)}"

        super().__init__(msg)


class ImageFormatError(SkewLatticeError):
    """Raised when an image file cannot be read or written."""

    def __init__(self, file_path: str, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            file_path: Path to the offending file
            reason: Optional reason for the failure
        """
        self.file_path = file_path
        self.reason = reason

        msg = f"Unsupported or unreadable image: {file_path}"
        if reason:
            msg += f" - {reason}"

        super().__init__(msg, details=f"path={file_path}")


# Exception hierarchy summary:
# SkewLatticeError (base)
# ├── SingularMatrixError
# ├── ValidationError
# ├── ConfigurationError
# ├── UnknownInterpolationError
# └── ImageFormatError
