"""
Router: Cuotas
app/routers/cuotas.py

Endpoints del motor de cuotas: alta, consulta, cobro, vencimiento,
soft delete y restauración.

Los errores de negocio (CuotaError) los traduce el handler de app/main.py.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.autorizacion import obtener_usuario_id
from app.models import Cuota, EstadoCuota
from app.services.cuota_service import CuotaService
from app.utils.periodos import normalizar_mes

router = APIRouter(prefix="/api/cuotas", tags=["Cuotas"])


# ═══════════════════════════════════════
# Schemas
# ═══════════════════════════════════════

class CuotaCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    alumno_categoria_id: int
    mes: Union[int, str]
    anio: int = Field(..., ge=2000, le=2100)
    monto: Decimal = Field(..., ge=0)
    estado: Optional[EstadoCuota] = None
    fecha_vencimiento: date
    fecha_pago: Optional[datetime] = None
    metodo_pago: Optional[str] = Field(None, max_length=50)
    descuento: Optional[Decimal] = Field(None, ge=0)
    recargo: Optional[Decimal] = Field(None, ge=0)
    observaciones: Optional[str] = Field(None, max_length=300)
    comprobante_numero: Optional[str] = Field(None, max_length=50)
    usuario_cobro: Optional[int] = None

    @field_validator("mes", mode="before")
    @classmethod
    def _normalizar_mes(cls, v):
        return normalizar_mes(v)


class CuotaUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    alumno_categoria_id: Optional[int] = None
    mes: Optional[Union[int, str]] = None
    anio: Optional[int] = Field(None, ge=2000, le=2100)
    monto: Optional[Decimal] = Field(None, ge=0)
    estado: Optional[EstadoCuota] = None
    fecha_vencimiento: Optional[date] = None
    fecha_pago: Optional[datetime] = None
    metodo_pago: Optional[str] = Field(None, max_length=50)
    descuento: Optional[Decimal] = Field(None, ge=0)
    recargo: Optional[Decimal] = Field(None, ge=0)
    observaciones: Optional[str] = Field(None, max_length=300)
    comprobante_numero: Optional[str] = Field(None, max_length=50)
    usuario_cobro: Optional[int] = None

    @field_validator("mes", mode="before")
    @classmethod
    def _normalizar_mes(cls, v):
        return normalizar_mes(v) if v is not None else v

    @model_validator(mode="after")
    def _al_menos_un_campo(self):
        if not self.model_fields_set:
            raise ValueError("Debe enviar al menos un campo para actualizar")
        return self


class PagoCuota(BaseModel):
    fecha_pago: Optional[datetime] = None
    metodo_pago: Optional[str] = Field(None, max_length=50)
    usuario_cobro: Optional[int] = None
    comprobante_numero: Optional[str] = Field(None, max_length=50)


# Columnas NOT NULL: un null explícito vuelve al valor por defecto
_DEFAULTS_NULOS = {
    "descuento": Decimal("0"),
    "recargo": Decimal("0"),
    "metodo_pago": "",
    "observaciones": "",
    "comprobante_numero": "",
}

_OBLIGATORIOS = ("alumno_categoria_id", "mes", "anio", "monto", "estado", "fecha_vencimiento")


def _limpiar(datos: dict) -> dict:
    limpio = {}
    for campo, valor in datos.items():
        if valor is None and campo in _DEFAULTS_NULOS:
            valor = _DEFAULTS_NULOS[campo]
        if valor is None and campo in _OBLIGATORIOS:
            continue
        limpio[campo] = valor
    return limpio


# ═══════════════════════════════════════
# Serialización
# ═══════════════════════════════════════

def _iso(valor):
    return valor.isoformat() if valor else None


def _serializar_inscripcion(ac) -> Optional[dict]:
    if ac is None:
        return None
    alumno = ac.alumno
    persona = alumno.persona if alumno else None
    return {
        "id": ac.id,
        "estado": ac.estado,
        "fecha_inscripcion": _iso(ac.fecha_inscripcion),
        "categoria": {
            "id": ac.categoria.id,
            "nombre": ac.categoria.nombre,
        } if ac.categoria else None,
        "alumno": {
            "id": alumno.id,
            "numero_socio": alumno.numero_socio,
            "persona": {
                "id": persona.id,
                "nombre": persona.nombre,
                "apellido": persona.apellido,
                "dni": persona.dni,
                "email": persona.email,
            } if persona else None,
        } if alumno else None,
    }


def serializar_cuota(c: Cuota, expandir: bool = False) -> dict:
    data = {
        "id": c.id,
        "alumno_categoria_id": c.alumno_categoria_id,
        "mes": c.mes,
        "anio": c.anio,
        "periodo_label": c.periodo_label,
        "monto": float(c.monto),
        "descuento": float(c.descuento or 0),
        "recargo": float(c.recargo or 0),
        "total_a_pagar": float(c.total_a_pagar),
        "estado": c.estado,
        "fecha_vencimiento": _iso(c.fecha_vencimiento),
        "fecha_pago": _iso(c.fecha_pago),
        "metodo_pago": c.metodo_pago or "",
        "comprobante_numero": c.comprobante_numero or "",
        "usuario_cobro": c.usuario_cobro,
        "observaciones": c.observaciones or "",
        "estado_registro": c.estado_registro,
        "deleted_at": _iso(c.deleted_at),
        "deleted_by": c.deleted_by,
        "restored_at": _iso(c.restored_at),
        "restored_by": c.restored_by,
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }
    if expandir:
        data["alumno_categoria"] = _serializar_inscripcion(c.alumno_categoria)
    return data


def _ok(mensaje: str, data=None) -> dict:
    return {"success": True, "mensaje": mensaje, "data": data}


def get_servicio(db: Session = Depends(get_db)) -> CuotaService:
    return CuotaService(db)


# ═══════════════════════════════════════
# COLECCIÓN
# ═══════════════════════════════════════

@router.post("", status_code=201)
async def crear_cuota(
    body: CuotaCreate,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Crea la cuota de un periodo para un alumno en una categoría."""
    cuota = svc.crear_cuota(_limpiar(body.model_dump(exclude_none=True)))
    return _ok("Cuota creada correctamente", serializar_cuota(cuota))


@router.get("")
async def listar_por_estado(
    estado: Optional[EstadoCuota] = None,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Lista cuotas (opcionalmente por estado) con alumno, persona y categoría."""
    cuotas = svc.listar_por_estado(estado.value if estado else None)
    return _ok("Cuotas filtradas por estado", [serializar_cuota(c, expandir=True) for c in cuotas])


@router.get("/periodo/buscar")
async def listar_por_periodo(
    anio: int = Query(..., ge=2000, le=2100),
    mes: str = Query(...),
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    cuotas = svc.listar_por_periodo(anio, mes)
    return _ok("Cuotas filtradas por periodo", [serializar_cuota(c) for c in cuotas])


@router.get("/vencidas/buscar")
async def listar_vencidas(
    fecha: Optional[date] = None,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Cuotas impagas con vencimiento anterior a `fecha` (hoy por defecto)."""
    cuotas = svc.listar_vencidas(fecha)
    return _ok("Cuotas vencidas obtenidas", [serializar_cuota(c) for c in cuotas])


@router.patch("/vencidas/actualizar")
async def actualizar_vencidas(
    fecha: Optional[date] = None,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Pasa a VENCIDA las cuotas PENDIENTE con vencimiento anterior a `fecha`."""
    cantidad = svc.actualizar_vencidas(fecha)
    return _ok(f"{cantidad} cuota(s) marcadas como vencidas", {"actualizadas": cantidad})


@router.get("/eliminadas/buscar")
async def listar_eliminadas(
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    cuotas = svc.listar_eliminadas()
    return _ok("Cuotas eliminadas obtenidas", [serializar_cuota(c) for c in cuotas])


@router.get("/alumno-categoria/{alumno_categoria_id}")
async def listar_por_alumno_categoria(
    alumno_categoria_id: int,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Cuotas de una inscripción, del periodo más nuevo al más viejo."""
    cuotas = svc.listar_por_alumno_categoria(alumno_categoria_id)
    return _ok("Cuotas obtenidas correctamente", [serializar_cuota(c) for c in cuotas])


# ═══════════════════════════════════════
# CUOTA INDIVIDUAL
# ═══════════════════════════════════════

@router.get("/{cuota_id}")
async def obtener_cuota(
    cuota_id: int,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    cuota = svc.obtener_cuota(cuota_id)
    return _ok("Cuota obtenida correctamente", serializar_cuota(cuota, expandir=True))


@router.put("/{cuota_id}")
async def actualizar_cuota(
    cuota_id: int,
    body: CuotaUpdate,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    cambios = _limpiar(body.model_dump(exclude_unset=True))
    cuota = svc.actualizar_cuota(cuota_id, cambios)
    return _ok("Cuota actualizada correctamente", serializar_cuota(cuota))


@router.delete("/{cuota_id}")
async def eliminar_cuota(
    cuota_id: int,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Borrado físico, sin posibilidad de restaurar."""
    cuota = svc.eliminar_cuota(cuota_id)
    return _ok("Cuota eliminada correctamente", serializar_cuota(cuota))


@router.patch("/{cuota_id}/soft-delete")
async def eliminar_cuota_logica(
    cuota_id: int,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    cuota = svc.eliminar_cuota_logica(cuota_id, deleted_by=usuario_id)
    return _ok("Cuota eliminada lógicamente", serializar_cuota(cuota))


@router.patch("/{cuota_id}/restore")
async def restaurar_cuota(
    cuota_id: int,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    cuota = svc.restaurar_cuota(cuota_id, restored_by=usuario_id)
    return _ok("Cuota restaurada correctamente", serializar_cuota(cuota))


@router.patch("/{cuota_id}/pagar")
async def marcar_como_pagada(
    cuota_id: int,
    body: Optional[PagoCuota] = None,
    usuario_id: int = Depends(obtener_usuario_id),
    svc: CuotaService = Depends(get_servicio),
):
    """Registra el cobro. Si no se indica quién cobró, queda el usuario actual."""
    datos_pago = (body or PagoCuota()).model_dump()
    if datos_pago.get("usuario_cobro") is None:
        datos_pago["usuario_cobro"] = usuario_id
    cuota = svc.marcar_como_pagada(cuota_id, datos_pago)
    return _ok("Cuota marcada como pagada", serializar_cuota(cuota))
