"""
Normalización de periodos de cuotas.

El mes de una cuota se guarda SIEMPRE como texto de dos dígitos ("01".."12"),
así el orden por texto coincide con el orden del calendario ("02" < "10").

Acepta como entrada:
  - números: 2, "2", "02"
  - nombres: "febrero", "Febrero", "feb"
  - periodo completo: "2024-02"
"""
import re
from typing import Union

MESES = {
    # Nombres completos
    'enero': 1, 'febrero': 2, 'marzo': 3, 'abril': 4,
    'mayo': 5, 'junio': 6, 'julio': 7, 'agosto': 8,
    'setiembre': 9, 'septiembre': 9, 'octubre': 10,
    'noviembre': 11, 'diciembre': 12,
    # Abreviaciones
    'ene': 1, 'feb': 2, 'mar': 3, 'abr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'ago': 8, 'set': 9, 'sep': 9, 'oct': 10, 'nov': 11, 'dic': 12,
}

MESES_LABEL = {
    1: 'Ene', 2: 'Feb', 3: 'Mar', 4: 'Abr', 5: 'May', 6: 'Jun',
    7: 'Jul', 8: 'Ago', 9: 'Set', 10: 'Oct', 11: 'Nov', 12: 'Dic'
}


def _mes_a_numero(valor: Union[int, str]) -> int:
    if isinstance(valor, bool):
        raise ValueError(f"Mes inválido: {valor!r}")

    if isinstance(valor, int):
        numero = valor
    else:
        texto = str(valor).strip().lower()

        # Caso: periodo "YYYY-MM"
        m = re.match(r'^\d{4}-(\d{1,2})$', texto)
        if m:
            texto = m.group(1)

        if texto.isdigit():
            numero = int(texto)
        elif texto in MESES:
            numero = MESES[texto]
        else:
            raise ValueError(f"Mes inválido: {valor!r}")

    if not 1 <= numero <= 12:
        raise ValueError(f"Mes fuera de rango: {valor!r}")
    return numero


def normalizar_mes(valor: Union[int, str]) -> str:
    """
    Convierte cualquier representación de mes a "MM".

    Ejemplos:
      2          → "02"
      "10"       → "10"
      "marzo"    → "03"
      "2024-07"  → "07"
    """
    return f"{_mes_a_numero(valor):02d}"


def etiqueta_periodo(anio: int, mes: str) -> str:
    """(2024, "03") → "Mar 2024" """
    try:
        numero = _mes_a_numero(mes)
    except ValueError:
        return f"{mes} {anio}"
    return f"{MESES_LABEL[numero]} {anio}"
