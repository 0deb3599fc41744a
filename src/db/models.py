from sqlalchemy import (
    MetaData,
    Table,
    Column,
    String,
    Text,
    Float,
)

from services.connectivity_engine.loader import load_catalog

# Define naming conventions for constraints and indexes
# https://alembic.sqlalchemy.org/en/latest/naming.html
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

TOKEN_LENGTH = 255
TIMESTAMP_LENGTH = 40
SCORE_PARTS = ("knowledge", "action", "attitude", "total")

catalog = load_catalog()


def _answer_columns():
    """One column per answer key across all pages, typed by question kind."""
    columns = []
    for question in catalog.questions():
        if question.kind == "number":
            columns.append(Column(question.key, Float, nullable=True))
        elif question.kind == "postcode":
            columns.append(Column(question.key, String(4), nullable=True))
        else:
            columns.append(Column(question.key, Text, nullable=True))
        if question.other_key:
            columns.append(Column(question.other_key, Text, nullable=True))
        if question.town_key:
            columns.append(Column(question.town_key, String(255), nullable=True))
    return columns


def score_column_names(code: str):
    prefix = code.lower()
    return [f"{prefix}_{part}" for part in SCORE_PARTS]


answers_table = Table(
    "survey_answers",
    metadata,
    Column("session_token", String(TOKEN_LENGTH), primary_key=True),
    Column("start_time", String(TIMESTAMP_LENGTH), nullable=True),
    Column("end_time", String(TIMESTAMP_LENGTH), nullable=True),
    Column("submission_time", String(TIMESTAMP_LENGTH), nullable=True),
    *_answer_columns(),
)

scores_table = Table(
    "survey_scores",
    metadata,
    Column("session_token", String(TOKEN_LENGTH), primary_key=True),
    Column("start_time", String(TIMESTAMP_LENGTH), nullable=True),
    *[
        Column(name, Float, nullable=True)
        for code in catalog.category_codes()
        for name in score_column_names(code)
    ],
)

TABLES = {
    "answers": answers_table,
    "scores": scores_table,
}
