"""
Servicio: Motor de Cuotas
app/services/cuota_service.py

Reglas de negocio alrededor del repositorio:
  - Una cuota por (alumno_categoria, anio, mes) entre las no eliminadas
  - PENDIENTE → PAGA (rechaza doble pago), VENCIDA → PAGA; PAGA es terminal
  - PENDIENTE → VENCIDA solo vía actualizar_vencidas() (job explícito)
  - Soft delete / restore con sellos de auditoría

El chequeo previo de duplicado es solo para dar un mensaje claro: dos requests
simultáneos pueden pasarlo. La garantía real es el índice único parcial, y su
rechazo se traduce al mismo PeriodoDuplicado. No se reintenta.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import (
    CuotaNoEncontrada,
    CuotaPagadaInmutable,
    CuotaYaPagada,
    MesInvalido,
    PeriodoDuplicado,
    RestriccionUnicidad,
)
from app.models import Cuota, EstadoCuota
from app.repositories.cuota_repository import CuotaRepository
from app.utils.periodos import normalizar_mes

logger = logging.getLogger(__name__)

CAMPOS_PERIODO = ("alumno_categoria_id", "anio", "mes")


class CuotaService:
    """Motor de cuotas: creación, cobro, vencimiento y soft delete."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CuotaRepository(db)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _obtener_o_404(self, cuota_id: int) -> Cuota:
        cuota = self.repo.buscar_por_id(cuota_id)
        if not cuota:
            raise CuotaNoEncontrada()
        return cuota

    def _verificar_periodo_libre(self, alumno_categoria_id, anio, mes, excluir_id=None):
        existente = self.repo.buscar_activa_por_periodo(
            alumno_categoria_id, anio, mes, excluir_id=excluir_id
        )
        if existente:
            raise PeriodoDuplicado()

    # ── Alta ──────────────────────────────────────────────────────────────────

    def crear_cuota(self, datos: dict) -> Cuota:
        datos = dict(datos)
        datos["mes"] = normalizar_mes(datos["mes"])

        self._verificar_periodo_libre(
            datos["alumno_categoria_id"], datos["anio"], datos["mes"]
        )

        if datos.get("estado") == EstadoCuota.PAGA.value and not datos.get("fecha_pago"):
            datos["fecha_pago"] = datetime.now(timezone.utc)

        try:
            cuota = self.repo.crear(datos)
        except RestriccionUnicidad:
            logger.warning(
                f"Duplicado detectado por la base: alumno_categoria "
                f"#{datos['alumno_categoria_id']} {datos['anio']}-{datos['mes']}"
            )
            raise PeriodoDuplicado()

        logger.info(
            f"Cuota #{cuota.id} creada: alumno_categoria #{cuota.alumno_categoria_id} "
            f"{cuota.anio}-{cuota.mes} por {cuota.monto}"
        )
        return cuota

    # ── Consultas ─────────────────────────────────────────────────────────────

    def obtener_cuota(self, cuota_id: int) -> Cuota:
        return self._obtener_o_404(cuota_id)

    def listar_por_alumno_categoria(self, alumno_categoria_id: int) -> List[Cuota]:
        return self.repo.buscar_por_alumno_categoria(alumno_categoria_id)

    def listar_por_estado(self, estado: Optional[str] = None) -> List[Cuota]:
        return self.repo.buscar_por_estado(estado)

    def listar_por_periodo(self, anio: int, mes) -> List[Cuota]:
        try:
            mes = normalizar_mes(mes)
        except ValueError as e:
            raise MesInvalido(str(e))
        return self.repo.buscar_por_periodo(anio, mes)

    def listar_vencidas(self, fecha_referencia: Optional[date] = None) -> List[Cuota]:
        """Impagas con vencimiento pasado. Solo consulta, no cambia estados."""
        if fecha_referencia is None:
            fecha_referencia = date.today()
        return self.repo.buscar_vencidas(fecha_referencia)

    def listar_eliminadas(self) -> List[Cuota]:
        return self.repo.buscar_eliminadas()

    # ── Modificación ──────────────────────────────────────────────────────────

    def actualizar_cuota(self, cuota_id: int, cambios: dict) -> Cuota:
        """
        Aplica un patch de campos.

        Si el patch toca el periodo (alumno_categoria_id, anio o mes) se vuelve
        a verificar la unicidad, igual que en el alta.
        """
        cuota = self._obtener_o_404(cuota_id)
        cambios = dict(cambios)

        if "mes" in cambios:
            cambios["mes"] = normalizar_mes(cambios["mes"])

        if any(campo in cambios for campo in CAMPOS_PERIODO):
            clave = {campo: cambios.get(campo, getattr(cuota, campo)) for campo in CAMPOS_PERIODO}
            if any(clave[campo] != getattr(cuota, campo) for campo in CAMPOS_PERIODO):
                self._verificar_periodo_libre(
                    clave["alumno_categoria_id"], clave["anio"], clave["mes"],
                    excluir_id=cuota.id,
                )

        estado_final = cambios.get("estado", cuota.estado)
        if cuota.estado == EstadoCuota.PAGA.value and estado_final != EstadoCuota.PAGA.value:
            logger.warning(f"Cuota #{cuota_id}: intento de pasar de PAGA a {estado_final}")
            raise CuotaPagadaInmutable()

        # Una cuota PAGA siempre tiene fecha de pago
        if estado_final == EstadoCuota.PAGA.value and not cambios.get("fecha_pago", cuota.fecha_pago):
            cambios["fecha_pago"] = cuota.fecha_pago or datetime.now(timezone.utc)

        try:
            return self.repo.actualizar(cuota, cambios)
        except RestriccionUnicidad:
            logger.warning(f"Cuota #{cuota_id}: el nuevo periodo choca con otra cuota activa")
            raise PeriodoDuplicado()

    def marcar_como_pagada(self, cuota_id: int, datos_pago: dict) -> Cuota:
        """
        Registra el cobro de una cuota.

        Rechaza el doble pago con CuotaYaPagada: un segundo cobro debe quedar a
        la vista, no aceptarse en silencio.
        """
        cuota = self._obtener_o_404(cuota_id)
        if cuota.estado == EstadoCuota.PAGA.value:
            raise CuotaYaPagada()

        cuota = self.repo.actualizar(cuota, {
            "estado": EstadoCuota.PAGA.value,
            "fecha_pago": datos_pago.get("fecha_pago") or datetime.now(timezone.utc),
            "metodo_pago": datos_pago.get("metodo_pago") or "",
            "usuario_cobro": datos_pago.get("usuario_cobro"),
            "comprobante_numero": datos_pago.get("comprobante_numero") or "",
        })
        logger.info(
            f"Cuota #{cuota.id} pagada ({cuota.metodo_pago or 'sin método'}) "
            f"por usuario #{cuota.usuario_cobro}: {cuota.total_a_pagar}"
        )
        return cuota

    def actualizar_vencidas(self, fecha_referencia: Optional[date] = None) -> int:
        """Persiste PENDIENTE → VENCIDA para las cuotas con vencimiento pasado."""
        if fecha_referencia is None:
            fecha_referencia = date.today()
        cantidad = self.repo.marcar_vencidas(fecha_referencia)
        logger.info(f"{cantidad} cuota(s) marcadas como VENCIDA al {fecha_referencia.isoformat()}")
        return cantidad

    # ── Bajas ─────────────────────────────────────────────────────────────────

    def eliminar_cuota(self, cuota_id: int) -> Cuota:
        """Borrado físico. Alcanza también a las eliminadas lógicamente."""
        cuota = self.repo.buscar_por_id_crudo(cuota_id)
        if not cuota:
            raise CuotaNoEncontrada()
        self.repo.eliminar_fisica(cuota)
        logger.info(f"Cuota #{cuota_id} eliminada físicamente")
        return cuota

    def eliminar_cuota_logica(self, cuota_id: int, deleted_by: int = None) -> Cuota:
        # Una cuota ya eliminada no se ve aquí: responde CuotaNoEncontrada
        cuota = self._obtener_o_404(cuota_id)
        cuota = self.repo.eliminar_logica(cuota, deleted_by)
        logger.info(f"Cuota #{cuota_id} eliminada lógicamente por usuario #{deleted_by}")
        return cuota

    def restaurar_cuota(self, cuota_id: int, restored_by: int = None) -> Cuota:
        cuota = self.repo.buscar_por_id_crudo(cuota_id)
        if not cuota:
            raise CuotaNoEncontrada()

        try:
            cuota = self.repo.restaurar(cuota, restored_by)
        except RestriccionUnicidad:
            logger.warning(f"Cuota #{cuota_id}: no se puede restaurar, su periodo ya tiene otra cuota activa")
            raise PeriodoDuplicado()

        logger.info(f"Cuota #{cuota_id} restaurada por usuario #{restored_by}")
        return cuota
