"""Exception taxonomy for oaslint."""


class OaslintError(Exception):
    """Base class for all oaslint errors."""


class ParseError(OaslintError):
    """Raised when the raw text is not a well-formed OpenAPI document.

    The underlying syntax error (if any) is kept on ``error`` and chained as
    ``__cause__`` by the parser.
    """

    def __init__(self, message: str, error: Exception | None = None,
                 line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.error = error
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} (line {self.line}, column {self.column})"
        return self.message


class RuleExecutionError(OaslintError):
    """A check raised while executing a rule."""

    def __init__(self, rule_id: str, check_name: str, error: Exception):
        self.rule_id = rule_id
        self.check_name = check_name
        self.error = error
        super().__init__(f'Rule "{check_name}" execution failed: {describe_exception(error)}')


class CatalogError(OaslintError):
    """Rule catalog cannot be loaded (missing ruleset, unsafe path)."""


def describe_exception(error: BaseException) -> str:
    """Human readable detail for an exception, never empty."""
    detail = str(error)
    return detail if detail else type(error).__name__
