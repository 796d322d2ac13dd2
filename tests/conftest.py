from __future__ import annotations

import pytest
from pathlib import Path
import sys

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from solar_string_sizer.db.session import Base  # noqa: E402
from solar_string_sizer.persistence import PersistenceService  # noqa: E402
from solar_string_sizer.sizing import InverterSpecs, ModuleSpecs, SiteConditions  # noqa: E402


@pytest.fixture()
def sqlite_session_factory():
    """Provide a session factory bound to an in-memory SQLite database."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    yield Session
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def persistence(sqlite_session_factory):
    """Provide a PersistenceService bound to the temporary SQLite DB."""
    return PersistenceService(session_factory=sqlite_session_factory)


@pytest.fixture()
def module() -> ModuleSpecs:
    """550 W mono module, the default values of the sizing form."""
    return ModuleSpecs(
        power=550,
        voc=49.6,
        vmp=41.7,
        isc=14.0,
        imp=13.2,
        temp_coeff_voc=-0.27,
        temp_coeff_vmp=-0.35,
    )


@pytest.fixture()
def inverter() -> InverterSpecs:
    return InverterSpecs(
        max_input_voltage=1000,
        min_mppt_voltage=200,
        max_mppt_voltage=850,
        max_input_current=15,
    )


@pytest.fixture()
def site() -> SiteConditions:
    return SiteConditions(min_temp=-10, max_temp=40)


@pytest.fixture()
def sizing_payload() -> dict:
    """Inline JSON payload equivalent to the module/inverter/site fixtures."""
    return {
        "module": {
            "name": "Test Module 550W",
            "power": 550,
            "voc": 49.6,
            "vmp": 41.7,
            "isc": 14.0,
            "imp": 13.2,
            "temp_coeff_voc": -0.27,
            "temp_coeff_vmp": -0.35,
        },
        "inverter": {
            "name": "Test Inverter",
            "max_input_voltage": 1000,
            "min_mppt_voltage": 200,
            "max_mppt_voltage": 850,
            "max_input_current": 15,
        },
        "site": {"min_temp": -10, "max_temp": 40},
    }
