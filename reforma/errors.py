class InvalidInput(ValueError):
    """Malformed numeric input to a ledger or schedule computation."""


class RowValidationError(ValueError):
    """A spreadsheet row carries an unusable value. Caught per row by the parser."""


class ReferenceIntegrityError(ValueError):
    """A bill line item points at a contract line item of another project."""


class ExternalCollaboratorError(RuntimeError):
    """The reasoning collaborator failed, timed out or answered with a malformed payload."""
