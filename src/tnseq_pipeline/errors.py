"""Errors raised while reading pipeline input tables."""


class ParseError(ValueError):
    """Malformed row or missing column in a feature or pool table.

    Attributes:
        row_index: 0-based data row index (None for header-level problems)
        field: Name of the offending column
    """

    def __init__(self, message: str, row_index: int | None = None, field: str | None = None):
        self.row_index = row_index
        self.field = field
        location = []
        if row_index is not None:
            location.append(f"row {row_index}")
        if field is not None:
            location.append(f"field '{field}'")
        if location:
            message = f"{', '.join(location)}: {message}"
        super().__init__(message)
