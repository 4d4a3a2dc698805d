"""Errors raised while reading and writing TextGrid documents."""


class TextGridError(ValueError):
    """Base error for this package."""


class MalformedHeaderError(TextGridError):
    """Raised when the `File type` or `Object class` identifier is wrong."""

    def __init__(self, field: str, expected: str, found: str | None):
        self.field = field
        self.expected = expected
        self.found = found
        got = "end of input" if found is None else f'"{found}"'
        super().__init__(
            f"TextGrid malformed; `{field}` incorrect: expected \"{expected}\", got {got}"
        )


class UnknownTierTypeError(TextGridError):
    """Raised when a tier record starts with an unrecognized class token."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f'TextGrid malformed; invalid tier type: "{token}"')


class MissingValueError(TextGridError):
    """Raised when the token queue runs out while a field is still expected."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"TextGrid malformed; early end of input expecting `{field}`")


class MalformedNumberError(TextGridError):
    """Raised when a numeric token cannot be parsed as the requested type."""

    def __init__(self, field: str, token: str, type_name: str):
        self.field = field
        self.token = token
        super().__init__(
            f'TextGrid malformed; unable to parse `{field}` value "{token}" as {type_name}'
        )


class TextGridWriteError(TextGridError):
    """Raised when a destination cannot be created or written."""
