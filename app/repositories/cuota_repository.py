"""
Repositorio: Cuotas
app/repositories/cuota_repository.py

Traduce las intenciones del servicio a consultas SQLAlchemy.
Sin reglas de negocio: solo lectura/escritura y el filtro de soft delete.

Las consultas por defecto excluyen eliminadas (Cuota.activos()).
buscar_por_id_crudo() es la única lectura que las incluye por id.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.exceptions import RestriccionUnicidad
from app.models import Alumno, AlumnoCategoria, Cuota, EstadoCuota


class CuotaRepository:

    def __init__(self, db: Session):
        self.db = db

    # ── Escrituras ────────────────────────────────────────────────────────────

    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise RestriccionUnicidad(str(exc.orig)) from exc

    def crear(self, datos: dict) -> Cuota:
        cuota = Cuota(**datos)
        self.db.add(cuota)
        self._commit()
        self.db.refresh(cuota)
        return cuota

    def actualizar(self, cuota: Cuota, cambios: dict) -> Cuota:
        for campo, valor in cambios.items():
            setattr(cuota, campo, valor)
        self._commit()
        self.db.refresh(cuota)
        return cuota

    def eliminar_logica(self, cuota: Cuota, deleted_by: int = None) -> Cuota:
        cuota.soft_delete(deleted_by)
        self._commit()
        self.db.refresh(cuota)
        return cuota

    def restaurar(self, cuota: Cuota, restored_by: int = None) -> Cuota:
        # Puede chocar con otra cuota activa creada mientras esta estaba eliminada
        cuota.restore(restored_by)
        self._commit()
        self.db.refresh(cuota)
        return cuota

    def eliminar_fisica(self, cuota: Cuota) -> Cuota:
        # Cargado antes de borrar: el objeto se devuelve ya desvinculado
        self.db.refresh(cuota)
        self.db.delete(cuota)
        self.db.commit()
        return cuota

    def marcar_vencidas(self, fecha_referencia: date) -> int:
        """PENDIENTE → VENCIDA para las no eliminadas con vencimiento anterior a la fecha."""
        actualizadas = self.db.query(Cuota).filter(
            Cuota.activos(),
            Cuota.estado == EstadoCuota.PENDIENTE.value,
            Cuota.fecha_vencimiento < fecha_referencia,
        ).update(
            {Cuota.estado: EstadoCuota.VENCIDA.value},
            synchronize_session=False,
        )
        self.db.commit()
        return actualizadas

    # ── Lecturas ──────────────────────────────────────────────────────────────

    def buscar_por_id(self, cuota_id: int) -> Optional[Cuota]:
        return self.db.query(Cuota).options(
            joinedload(Cuota.alumno_categoria)
        ).filter(
            Cuota.id == cuota_id,
            Cuota.activos(),
        ).first()

    def buscar_por_id_crudo(self, cuota_id: int) -> Optional[Cuota]:
        """Incluye eliminadas lógicamente."""
        return self.db.get(Cuota, cuota_id)

    def buscar_activa_por_periodo(
        self,
        alumno_categoria_id: int,
        anio: int,
        mes: str,
        excluir_id: int = None,
    ) -> Optional[Cuota]:
        query = self.db.query(Cuota).filter(
            Cuota.alumno_categoria_id == alumno_categoria_id,
            Cuota.anio == anio,
            Cuota.mes == mes,
            Cuota.activos(),
        )
        if excluir_id is not None:
            query = query.filter(Cuota.id != excluir_id)
        return query.first()

    def buscar_por_alumno_categoria(self, alumno_categoria_id: int) -> List[Cuota]:
        # mes está normalizado a "MM", el orden por texto es el del calendario
        return self.db.query(Cuota).filter(
            Cuota.alumno_categoria_id == alumno_categoria_id,
            Cuota.activos(),
        ).order_by(Cuota.anio.desc(), Cuota.mes.desc()).all()

    def buscar_por_estado(self, estado: Optional[str] = None) -> List[Cuota]:
        """Expande inscripción → alumno → persona y inscripción → categoría."""
        query = self.db.query(Cuota).options(
            joinedload(Cuota.alumno_categoria)
            .joinedload(AlumnoCategoria.alumno)
            .joinedload(Alumno.persona),
            joinedload(Cuota.alumno_categoria)
            .joinedload(AlumnoCategoria.categoria),
        ).filter(Cuota.activos())

        if estado:
            query = query.filter(Cuota.estado == estado)

        return query.order_by(Cuota.id).all()

    def buscar_por_periodo(self, anio: int, mes: str) -> List[Cuota]:
        return self.db.query(Cuota).filter(
            Cuota.anio == anio,
            Cuota.mes == mes,
            Cuota.activos(),
        ).order_by(Cuota.id).all()

    def buscar_vencidas(self, fecha_referencia: date) -> List[Cuota]:
        """Impagas con vencimiento anterior a la fecha. No modifica el estado."""
        return self.db.query(Cuota).filter(
            Cuota.activos(),
            Cuota.estado.in_([EstadoCuota.PENDIENTE.value, EstadoCuota.VENCIDA.value]),
            Cuota.fecha_vencimiento < fecha_referencia,
        ).order_by(Cuota.fecha_vencimiento.asc(), Cuota.id).all()

    def buscar_eliminadas(self) -> List[Cuota]:
        return self.db.query(Cuota).filter(
            Cuota.eliminados()
        ).order_by(Cuota.deleted_at.desc()).all()
