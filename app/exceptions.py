"""
Errores del motor de cuotas
app/exceptions.py

El servicio los lanza tal cual; app/main.py los traduce a HTTP.
"""


class CuotaError(Exception):
    """Error de negocio con código y status HTTP asociado."""
    status_code = 400
    codigo = "CUOTA_ERROR"
    mensaje = "Error en la operación de cuota"

    def __init__(self, mensaje: str = None):
        self.mensaje = mensaje or self.mensaje
        super().__init__(self.mensaje)


class CuotaNoEncontrada(CuotaError):
    status_code = 404
    codigo = "CUOTA_NO_ENCONTRADA"
    mensaje = "Cuota no encontrada"


class PeriodoDuplicado(CuotaError):
    codigo = "PERIODO_DUPLICADO"
    mensaje = "Ya existe una cuota para este periodo y alumno"


class CuotaYaPagada(CuotaError):
    codigo = "CUOTA_YA_PAGADA"
    mensaje = "La cuota ya está pagada"


class RestriccionUnicidad(Exception):
    """La base rechazó la escritura por el índice único de periodo."""


class CuotaPagadaInmutable(CuotaError):
    codigo = "CUOTA_PAGADA_INMUTABLE"
    mensaje = "Una cuota pagada no puede volver a otro estado"


class MesInvalido(CuotaError):
    codigo = "MES_INVALIDO"
    mensaje = "Mes inválido"
