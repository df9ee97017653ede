# errores.py
# Errores de dominio que viajan hasta el handler global de app.py


class AppError(Exception):
    """Error con mensaje legible para el cliente y status HTTP asociado."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"message": self.message}


class InputError(AppError):
    """Parámetro faltante o inválido."""

    status_code = 400


class UnsupportedFormatError(InputError):
    def __init__(self, message="unsupported format"):
        super().__init__(message)


class NoDataError(AppError):
    """El reporte pedido no tiene datos que exportar."""

    status_code = 404

    def __init__(self, message="no data to export"):
        super().__init__(message)
