"""
Excepciones del pipeline de ingesta.
"""


class IngestionError(Exception):
    """Error base del pipeline de ingesta."""


class SourceError(IngestionError):
    """Falla transitoria de una fuente externa (red, proveedor, JSON inválido)."""

    def __init__(self, source: str, descriptor: str, message: str):
        self.source = source
        self.descriptor = descriptor
        super().__init__(f"[{source}] {descriptor}: {message}")


class CatalogWriteError(IngestionError):
    """El catálogo no devolvió el registro insertado."""


class RunAlreadyInProgressError(IngestionError):
    """Ya hay una ejecución del mismo pipeline en curso en este proceso."""

    def __init__(self, pipeline: str):
        self.pipeline = pipeline
        super().__init__(f"Ya hay una ejecución de '{pipeline}' en curso")
