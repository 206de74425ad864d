"""
Configuración
app/config.py

Variables de entorno de la aplicación. Todo tiene default para desarrollo local.
"""

import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./club.db")

# JWT (la emisión de tokens vive en el módulo auth, aquí solo se verifican)
SECRET_KEY = os.getenv("SECRET_KEY", "tu-clave-secreta")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
