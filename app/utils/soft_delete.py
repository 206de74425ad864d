"""
Soft delete con auditoría
app/utils/soft_delete.py

Mixin para modelos SQLAlchemy. Agrega las columnas de auditoría y los métodos
para eliminar/restaurar lógicamente.

Uso:
    class Cuota(SoftDeleteMixin, Base):
        ...

    db.query(Cuota).filter(Cuota.activos())      # solo no eliminadas
    db.query(Cuota).filter(Cuota.eliminados())   # solo eliminadas
    db.get(Cuota, id)                            # incluye eliminadas (crudo)

Un registro con deleted_at != NULL está eliminado lógicamente.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer


class SoftDeleteMixin:
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None, index=True)
    deleted_by = Column(Integer, nullable=True, default=None)
    restored_at = Column(DateTime(timezone=True), nullable=True, default=None)
    restored_by = Column(Integer, nullable=True, default=None)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def estado_registro(self) -> str:
        return "ELIMINADO" if self.is_deleted else "ACTIVO"

    def soft_delete(self, deleted_by: int = None):
        """Marca el registro como eliminado. Limpia los sellos de restauración."""
        self.deleted_at = datetime.now(timezone.utc)
        self.deleted_by = deleted_by
        self.restored_at = None
        self.restored_by = None

    def restore(self, restored_by: int = None):
        """Limpia la eliminación y sella la restauración (aunque no estuviera eliminado)."""
        self.deleted_at = None
        self.deleted_by = None
        self.restored_at = datetime.now(timezone.utc)
        self.restored_by = restored_by

    @classmethod
    def activos(cls):
        return cls.deleted_at.is_(None)

    @classmethod
    def eliminados(cls):
        return cls.deleted_at.isnot(None)
