# core/exceptions.py
"""Excepciones de dominio compartidas por los módulos."""


class ReportValidationError(Exception):
    """Entrada inválida del cliente (se responde 400)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DataAccessError(Exception):
    """Fallo al ejecutar una consulta contra la base de datos (se responde 500)."""


class DatabaseUnavailableError(DataAccessError):
    """El pool de conexiones no existe (fallo en el startup)."""
