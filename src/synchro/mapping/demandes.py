"""
BloDemande (primary) ⇄ Produits (secondary).

The primary tracks a request's state as a status code; the secondary only
has a "Refus" checkbox. Status REFUSED_STATUS is the one code that maps onto
the checkbox, so the correspondence is exact for refusals and lossy for every
other code (they all come back as DEFAULT_STATUS).
"""
from typing import Any, Dict

from synchro.mapping.coercion import (
    SECONDARY_TRUE_STRINGS,
    Payload,
    get_bool,
    get_datetime,
    get_int,
    get_string,
    require_key,
    require_key_datetime,
)
from synchro.mapping.translation import TargetRow

REFUSED_STATUS = 5
DEFAULT_STATUS = 1

ATELIER_KEYS = ("Atelier",)
DATE_DEMANDE_KEYS = ("DateDemande", "Date de la demande")
REF_BE_KEYS = ("RefBE", "ref BE")


def refusal_from_status(status: int) -> bool:
    return status == REFUSED_STATUS


def status_from_refusal(refused: bool) -> int:
    return REFUSED_STATUS if refused else DEFAULT_STATUS


def _natural_key(keys: Payload) -> tuple:
    return (
        require_key(keys, ATELIER_KEYS),
        require_key_datetime(keys, DATE_DEMANDE_KEYS),
        require_key(keys, REF_BE_KEYS),
    )


# ── Primary → secondary ───────────────────────────────────────────────────────

def produits_key(keys: Payload) -> Dict[str, Any]:
    atelier, date_demande, ref_be = _natural_key(keys)
    return {"Atelier": atelier, "Date de la demande": date_demande, "ref BE": ref_be}


def to_produits(keys: Payload, values: Payload) -> TargetRow:
    """BloDemande row image → Produits row. Text defaults to ""."""
    reponse = get_string(values, "Reponse")
    return TargetRow(
        key=produits_key(keys),
        values={
            "Origine de la modification": get_string(values, "OrigineModif") or "",
            "type d'erreur": get_string(values, "TypeErreur") or "",
            "Commentaire": get_string(values, "Commentaire") or "",
            "Date de mise à jour": get_datetime(values, "DateModif"),
            "Réponse FAB/BE": reponse or None,
            "Refus": refusal_from_status(get_int(values, "Statut")),
        },
    )


# ── Secondary → primary ───────────────────────────────────────────────────────

def blo_demande_key(keys: Payload) -> Dict[str, Any]:
    atelier, date_demande, ref_be = _natural_key(keys)
    return {"Atelier": atelier, "DateDemande": date_demande, "RefBE": ref_be}


def to_blo_demande(keys: Payload, values: Payload) -> TargetRow:
    """Produits row image → BloDemande row. Absent text stays NULL.

    Access writes its log with the primary's field names; the Access column
    names are accepted as fallbacks.
    """
    refused = get_bool(values, "Refus", truthy=SECONDARY_TRUE_STRINGS)
    return TargetRow(
        key=blo_demande_key(keys),
        values={
            "OrigineModif": get_string(values, "OrigineModif", "Origine de la modification"),
            "TypeErreur": get_string(values, "TypeErreur", "type d'erreur"),
            "Commentaire": get_string(values, "Commentaire"),
            "DateModif": get_datetime(values, "DateModif", "Date de mise à jour"),
            "Reponse": get_string(values, "Reponse", "Réponse FAB/BE"),
            "Statut": status_from_refusal(refused),
        },
    )
