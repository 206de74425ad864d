from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import ALGORITHM, SECRET_KEY
from app.database import Base, get_db
from app.main import app
from app.models import Alumno, AlumnoCategoria, Categoria, Persona
from app.services.cuota_service import CuotaService

USUARIO_ID = 7


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def svc(db):
    return CuotaService(db)


def crear_inscripcion(db, dni="30111222", categoria="Sub-12"):
    persona = Persona(nombre="Lionel", apellido="Gómez", dni=dni, email=f"{dni}@club.test")
    db.add(persona)
    db.flush()
    alumno = Alumno(persona_id=persona.id, numero_socio=f"S-{dni}")
    cat = Categoria(nombre=categoria)
    db.add_all([alumno, cat])
    db.flush()
    inscripcion = AlumnoCategoria(
        alumno_id=alumno.id,
        categoria_id=cat.id,
        fecha_inscripcion=date(2024, 1, 10),
    )
    db.add(inscripcion)
    db.commit()
    return inscripcion.id


@pytest.fixture
def inscripcion_id(db):
    return crear_inscripcion(db)


@pytest.fixture
def datos_cuota(inscripcion_id):
    """Devuelve un factory de payloads válidos para crear_cuota."""
    def _datos(**extra):
        datos = {
            "alumno_categoria_id": inscripcion_id,
            "anio": 2024,
            "mes": "03",
            "monto": Decimal("50"),
            "fecha_vencimiento": date(2024, 3, 10),
        }
        datos.update(extra)
        return datos
    return _datos


@pytest.fixture
def token():
    return jwt.encode({"user_id": USUARIO_ID}, SECRET_KEY, algorithm=ALGORITHM)


@pytest.fixture
def client(session_factory, token):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    client.headers.update({"Authorization": f"Bearer {token}"})
    yield client
    app.dependency_overrides.clear()
