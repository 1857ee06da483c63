"""
Static table-pair registry.

Each EntityPair names a primary table and its secondary counterpart; a
change-log entry's TableName is the *source* side's name, so the same pair
is looked up by its primary name going one way and its secondary name going
the other.
"""
from enum import Enum
from typing import Dict, Tuple

from synchro.errors import UnmappedTableError
from synchro.mapping import demandes, modifications
from synchro.mapping.translation import Translation
from synchro.models.change_log import Direction
from synchro.models.tables import (
    blo_demande,
    blo_modifications_fm,
    modifications as modifications_table,
    produits,
)


class EntityPair(Enum):
    DEMANDES = ("BloDemande", "Produits")
    MODIFICATIONS = ("BloModificationsFM", "Modifications")

    @property
    def primary_table(self) -> str:
        return self.value[0]

    @property
    def secondary_table(self) -> str:
        return self.value[1]

    def source_table(self, direction: Direction) -> str:
        return self.secondary_table if direction.targets_primary else self.primary_table

    @classmethod
    def for_source(cls, direction: Direction, table_name: str) -> "EntityPair":
        """Resolve the pair whose source side (for ``direction``) is ``table_name``.

        Raises:
            UnmappedTableError: no pair has that source table.
        """
        for pair in cls:
            if pair.source_table(direction).lower() == (table_name or "").strip().lower():
                return pair
        raise UnmappedTableError(
            f"No {direction.value} mapping for table {table_name!r}"
        )


TRANSLATIONS: Dict[Tuple[EntityPair, Direction], Translation] = {
    (EntityPair.DEMANDES, Direction.PRIMARY_TO_SECONDARY): Translation(
        source_table="BloDemande",
        target=produits,
        translate_key=demandes.produits_key,
        translate_row=demandes.to_produits,
    ),
    (EntityPair.DEMANDES, Direction.SECONDARY_TO_PRIMARY): Translation(
        source_table="Produits",
        target=blo_demande,
        translate_key=demandes.blo_demande_key,
        translate_row=demandes.to_blo_demande,
    ),
    (EntityPair.MODIFICATIONS, Direction.PRIMARY_TO_SECONDARY): Translation(
        source_table="BloModificationsFM",
        target=modifications_table,
        translate_key=modifications.modifications_key,
        translate_row=modifications.to_modifications,
    ),
    (EntityPair.MODIFICATIONS, Direction.SECONDARY_TO_PRIMARY): Translation(
        source_table="Modifications",
        target=blo_modifications_fm,
        translate_key=modifications.blo_modifications_fm_key,
        translate_row=modifications.to_blo_modifications_fm,
        insert_defaults={"CausesBlocage": None},
    ),
}


def translation_for(direction: Direction, table_name: str) -> Translation:
    return TRANSLATIONS[(EntityPair.for_source(direction, table_name), direction)]
