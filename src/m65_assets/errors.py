"""Errors that abort a build."""


class ConverterError(Exception):
    """Base for all errors reported to the user."""


class StructureError(ConverterError, ValueError):
    """Stages registered in an invalid count, order or configuration."""

    def __init__(
        self, message: str, stage: str | None = None, position: int | None = None
    ):
        if stage is not None:
            message = f"{stage} (position {position}): {message}"
        super().__init__(message)
        self.stage = stage
        self.position = position


class InputError(ConverterError, ValueError):
    """Source asset is missing, unreadable or malformed."""

    def __init__(self, message: str, path=None):
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class CapacityError(ConverterError, ValueError):
    """Something does not fit its hardware budget."""

    def __init__(self, what: str, attempted: int, limit: int):
        super().__init__(f"{what}: {attempted} exceeds the limit of {limit}")
        self.what = what
        self.attempted = attempted
        self.limit = limit


class ExportError(ConverterError, OSError):
    """Output could not be written."""
