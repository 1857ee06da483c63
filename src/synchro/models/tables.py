"""
Replicated tables on both stores, as SQLAlchemy Core tables.

These describe existing tables for statement building only; column names are
the stores' real names, spaces and accents included. SQLAlchemy quotes them
per dialect ([...] on SQL Server / Access).
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, MetaData, String, Table

primary_metadata = MetaData()
secondary_metadata = MetaData()

# ── Primary store (SQL Server) ────────────────────────────────────────────────

blo_demande = Table(
    "BloDemande",
    primary_metadata,
    Column("Atelier", String(50)),
    Column("DateDemande", DateTime),
    Column("RefBE", String(50)),
    Column("OrigineModif", String(255)),
    Column("TypeErreur", String(255)),
    Column("Commentaire", String(255)),
    Column("DateModif", DateTime),
    Column("Reponse", String(255)),
    Column("Statut", Integer),
)

blo_modifications_fm = Table(
    "BloModificationsFM",
    primary_metadata,
    Column("CodeBE", String(50)),
    Column("DateSaisie", DateTime),
    Column("Description", String(255)),
    Column("Realisateur", String(255)),
    Column("DateRealisation", DateTime),
    Column("ModifTole", Boolean),
    Column("RealisateurTole", String(255)),
    Column("DateModifTole", DateTime),
    Column("ModifCodeBE", Boolean),
    Column("RealisateurCodeBE", String(255)),
    Column("DateModifCodeBE", DateTime),
    Column("CausesBlocage", String(255)),
)

# ── Secondary store (Access) ──────────────────────────────────────────────────

produits = Table(
    "Produits",
    secondary_metadata,
    Column("Atelier", String(50)),
    Column("Date de la demande", DateTime),
    Column("ref BE", String(50)),
    Column("Origine de la modification", String(255)),
    Column("type d'erreur", String(255)),
    Column("Commentaire", String(255)),
    Column("Date de mise à jour", DateTime),
    Column("Réponse FAB/BE", String(255)),
    Column("Refus", Boolean),
)

modifications = Table(
    "Modifications",
    secondary_metadata,
    Column("Code_Be", String(50)),
    Column("Dat_Sai", DateTime),
    Column("Des_Mod", String(255)),
    Column("Fai_Qui", String(255)),
    Column("Fai_Dat", DateTime),
    Column("Val_Qui", String(255)),
    Column("Val_Dat", DateTime),
    Column("Mic_Oui", Boolean),
    Column("Mic_Qui", String(255)),
    Column("Mic_Dat", DateTime),
    Column("Tol_Oui", Boolean),
    Column("Tol_Qui", String(255)),
    Column("Tol_Dat", DateTime),
    Column("CodeBE_Oui", Boolean),
    Column("CodeBE_Qui", String(255)),
    Column("CodeBE_Dat", DateTime),
)
