"""
Task: Vencimiento de cuotas
app/tasks/vencer_cuotas_task.py

Pasa a VENCIDA las cuotas PENDIENTE cuya fecha de vencimiento ya pasó.
Es la única escritura del estado VENCIDA: la consulta de vencidas
(GET /api/cuotas/vencidas/buscar) nunca modifica estados.

Pensado para correr una vez al día (cron, Celery beat o APScheduler):
    python -m app.tasks.vencer_cuotas_task
"""

import logging
from datetime import date
from typing import Optional

logger = logging.getLogger(__name__)


def vencer_cuotas(fecha_referencia: Optional[date] = None) -> dict:
    """Task principal: abre sesión, actualiza y devuelve el resumen."""
    from app.database import SessionLocal
    from app.services.cuota_service import CuotaService

    db = SessionLocal()
    try:
        fecha_referencia = fecha_referencia or date.today()
        cantidad = CuotaService(db).actualizar_vencidas(fecha_referencia)
        return {"fecha": fecha_referencia.isoformat(), "actualizadas": cantidad}
    except Exception as e:
        logger.error(f"Error venciendo cuotas: {e}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    resultado = vencer_cuotas()
    logger.info(f"Vencimiento al {resultado['fecha']}: {resultado['actualizadas']} cuota(s) actualizadas")
