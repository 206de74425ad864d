from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Numeric, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base
from .utils.periodos import etiqueta_periodo
from .utils.soft_delete import SoftDeleteMixin
import enum
from decimal import Decimal

# --- ENUMS ---
class EstadoCuota(str, enum.Enum):
    PENDIENTE = "PENDIENTE"
    PAGA = "PAGA"
    VENCIDA = "VENCIDA"   # Solo la escribe el job de vencimiento

class EstadoInscripcion(str, enum.Enum):
    ACTIVO = "ACTIVO"
    INACTIVO = "INACTIVO"


# --- REFERENCIAS (solo lectura desde este módulo) ---
class Persona(Base):
    __tablename__ = "personas"
    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100), nullable=False)
    dni = Column(String(15), unique=True)
    email = Column(String(150), nullable=True)

class Alumno(Base):
    __tablename__ = "alumnos"
    id = Column(Integer, primary_key=True, index=True)
    persona_id = Column(Integer, ForeignKey("personas.id"), nullable=False, unique=True)
    numero_socio = Column(String(30), unique=True)

    persona = relationship("Persona")

class Categoria(Base):
    __tablename__ = "categorias"
    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False)  # "Sub-12", "Primera"

class AlumnoCategoria(Base):
    """Inscripción de un alumno en una categoría."""
    __tablename__ = "alumno_categorias"
    id = Column(Integer, primary_key=True, index=True)
    alumno_id = Column(Integer, ForeignKey("alumnos.id"), nullable=False)
    categoria_id = Column(Integer, ForeignKey("categorias.id"), nullable=False)
    estado = Column(String(20), default=EstadoInscripcion.ACTIVO.value)
    fecha_inscripcion = Column(Date, nullable=True)

    alumno = relationship("Alumno")
    categoria = relationship("Categoria")
    cuotas = relationship("Cuota", back_populates="alumno_categoria")


# --- MÓDULO CUOTAS ---
class Cuota(SoftDeleteMixin, Base):
    """
    Cuota mensual de un alumno en una categoría.

    Única por (alumno_categoria_id, anio, mes) entre las NO eliminadas:
    el índice parcial es la garantía real ante escrituras concurrentes.
    """
    __tablename__ = "cuotas"
    __table_args__ = (
        Index(
            "uq_cuotas_periodo_activo",
            "alumno_categoria_id", "anio", "mes",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    alumno_categoria_id = Column(Integer, ForeignKey("alumno_categorias.id"), nullable=False, index=True)

    # Periodo
    mes = Column(String(2), nullable=False)  # "01".."12", siempre normalizado
    anio = Column(Integer, nullable=False, index=True)

    # Importes
    monto = Column(Numeric(10, 2), nullable=False)
    descuento = Column(Numeric(10, 2), default=0, nullable=False)
    recargo = Column(Numeric(10, 2), default=0, nullable=False)

    estado = Column(String(20), default=EstadoCuota.PENDIENTE.value, nullable=False, index=True)
    fecha_vencimiento = Column(Date, nullable=False)

    # Cobro
    fecha_pago = Column(DateTime(timezone=True), nullable=True)
    metodo_pago = Column(String(50), default="")
    comprobante_numero = Column(String(50), default="")
    usuario_cobro = Column(Integer, nullable=True)  # id del usuario que cobró

    observaciones = Column(Text, default="")

    # Auditoría
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    alumno_categoria = relationship("AlumnoCategoria", back_populates="cuotas")

    @property
    def total_a_pagar(self) -> Decimal:
        return (
            Decimal(self.monto or 0)
            - Decimal(self.descuento or 0)
            + Decimal(self.recargo or 0)
        )

    @property
    def periodo_label(self) -> str:
        return etiqueta_periodo(self.anio, self.mes)
