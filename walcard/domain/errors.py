# walcard/domain/errors.py


class RemoteError(Exception):
    """Blad zwrocony przez backend albo transport HTTP."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class SchemaError(RemoteError):
    """Rekord z backendu nie pasuje do oczekiwanego schematu."""


class StoreError(Exception):
    """Lokalny magazyn klucz/wartosc jest niedostepny."""
