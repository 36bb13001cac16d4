"""Schema versioning for the catalog database.

Each entry in ``UPGRADES`` moves the schema from ``version - 1`` to
``version``. ``upgrade_schema`` runs the pending steps in order inside the
opening transaction and records the new version, so a database is upgraded
exactly once no matter how many times it is opened.
"""

import logging
from collections.abc import Callable

from sqlalchemy import Column, Connection, Integer, MetaData, Table, select, update
from sqlalchemy.schema import CreateIndex, CreateTable

from closet.errors import StorageUnavailable
from closet.models import ClothingItem, Outfit, OutfitItem

logger = logging.getLogger(__name__)

version_metadata = MetaData()

schema_version = Table(
    "schema_version",
    version_metadata,
    Column("version", Integer, nullable=False),
)


def _create_collections(conn: Connection) -> None:
    for model in (ClothingItem, Outfit, OutfitItem):
        conn.execute(CreateTable(model.__table__, if_not_exists=True))


def _create_secondary_indexes(conn: Connection) -> None:
    for model in (ClothingItem, Outfit):
        for index in sorted(model.__table__.indexes, key=lambda ix: ix.name):
            conn.execute(CreateIndex(index, if_not_exists=True))


UPGRADES: dict[int, Callable[[Connection], None]] = {
    1: _create_collections,
    2: _create_secondary_indexes,
}

SCHEMA_VERSION = max(UPGRADES)


def get_schema_version(conn: Connection) -> int:
    schema_version.create(conn, checkfirst=True)
    current = conn.execute(select(schema_version.c.version)).scalar()
    if current is None:
        conn.execute(schema_version.insert().values(version=0))
        return 0
    return current


def upgrade_schema(conn: Connection) -> int:
    current = get_schema_version(conn)
    if current > SCHEMA_VERSION:
        raise StorageUnavailable(
            f"Database schema version {current} is newer than this release ({SCHEMA_VERSION})"
        )

    for version in range(current + 1, SCHEMA_VERSION + 1):
        logger.info("Upgrading schema to version %s", version)
        UPGRADES[version](conn)
        conn.execute(update(schema_version).values(version=version))

    return SCHEMA_VERSION
