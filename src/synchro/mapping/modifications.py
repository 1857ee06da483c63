"""
BloModificationsFM (primary) ⇄ Modifications (secondary).

The secondary form splits the sheet-metal change into two checkbox groups
(Mic_* and Tol_*) that the primary keeps as one (ModifTole). Going to the
secondary both groups receive the primary's values; coming back only Tol_*
is read. Val_Qui / Val_Dat have no primary equivalent, CausesBlocage no
secondary one.
"""
from typing import Any, Dict, Optional

from synchro.mapping.coercion import (
    SECONDARY_TRUE_STRINGS,
    Payload,
    get_bool,
    get_datetime,
    get_string,
    key_datetime_or_now,
    require_key,
    require_key_datetime,
)
from synchro.mapping.translation import TargetRow

# Primary-side log keys; older Access builds wrote the Access spellings.
PRIMARY_CODE_BE_KEYS = ("CodeBE", "Code_Be")
PRIMARY_DATE_SAISIE_KEYS = ("DateSaisie", "Dat_Sai")

SECONDARY_CODE_BE_KEYS = ("Code_Be", "CodeBE")
SECONDARY_DATE_SAISIE_KEYS = ("Dat_Sai", "DateSaisie", "Saisie")


# ── Primary → secondary ───────────────────────────────────────────────────────

def modifications_key(keys: Payload) -> Dict[str, Any]:
    return {
        "Code_Be": require_key(keys, PRIMARY_CODE_BE_KEYS),
        "Dat_Sai": require_key_datetime(keys, PRIMARY_DATE_SAISIE_KEYS),
    }


def to_modifications(keys: Payload, values: Payload) -> TargetRow:
    modif_tole = get_bool(values, "ModifTole")
    realisateur_tole = get_string(values, "RealisateurTole") or ""
    date_modif_tole = get_datetime(values, "DateModifTole")
    return TargetRow(
        key=modifications_key(keys),
        values={
            "Des_Mod": get_string(values, "Description") or "",
            "Fai_Qui": get_string(values, "Realisateur") or "",
            "Fai_Dat": get_datetime(values, "DateRealisation"),
            "Val_Qui": "",
            "Val_Dat": None,
            "Mic_Oui": modif_tole,
            "Mic_Qui": realisateur_tole,
            "Mic_Dat": date_modif_tole,
            "Tol_Oui": modif_tole,
            "Tol_Qui": realisateur_tole,
            "Tol_Dat": date_modif_tole,
            "CodeBE_Oui": get_bool(values, "ModifCodeBE"),
            "CodeBE_Qui": get_string(values, "RealisateurCodeBE") or "",
            "CodeBE_Dat": get_datetime(values, "DateModifCodeBE"),
        },
    )


# ── Secondary → primary ───────────────────────────────────────────────────────

def blo_modifications_fm_key(keys: Payload, values: Optional[Payload] = None) -> Dict[str, Any]:
    """Natural key on the primary.

    The entry date is not critical in Access logs: if no spelling parses it
    falls back to now. When a row image is available its Dat_Sai wins, so the
    key written here matches the row Access actually holds.
    """
    date_saisie = get_datetime(values or {}, "Dat_Sai")
    if date_saisie is None:
        date_saisie = key_datetime_or_now(keys, SECONDARY_DATE_SAISIE_KEYS)
    return {
        "CodeBE": require_key(keys, SECONDARY_CODE_BE_KEYS),
        "DateSaisie": date_saisie,
    }


def to_blo_modifications_fm(keys: Payload, values: Payload) -> TargetRow:
    def flag(name: str) -> bool:
        return get_bool(values, name, truthy=SECONDARY_TRUE_STRINGS)

    return TargetRow(
        key=blo_modifications_fm_key(keys, values),
        values={
            "Description": get_string(values, "Des_Mod"),
            "Realisateur": get_string(values, "Fai_Qui"),
            "DateRealisation": get_datetime(values, "Fai_Dat"),
            "ModifTole": flag("Tol_Oui"),
            "RealisateurTole": get_string(values, "Tol_Qui"),
            "DateModifTole": get_datetime(values, "Tol_Dat"),
            "ModifCodeBE": flag("CodeBE_Oui"),
            "RealisateurCodeBE": get_string(values, "CodeBE_Qui"),
            "DateModifCodeBE": get_datetime(values, "CodeBE_Dat"),
        },
    )
