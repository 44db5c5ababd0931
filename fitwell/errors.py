"""
Exception hierarchy for the FitWell data layer
"""


class FitwellError(Exception):
    """Base class for all FitWell errors"""


class DatabaseNotInitializedError(FitwellError, RuntimeError):
    """The database was used before init() or after close()"""

    def __init__(self, message: str = "Database not initialized. Call init() first."):
        super().__init__(message)


class SchemaError(FitwellError):
    """Creating or migrating the schema failed"""


class InvalidInputError(FitwellError, ValueError):
    """A caller supplied arguments the operation cannot accept"""


class RecordNotFoundError(FitwellError, LookupError):
    """An update referenced a row that does not exist"""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class IntegrityViolationError(FitwellError):
    """The store rejected a write (foreign key, check or unique constraint)"""
