import databases
import sqlalchemy
from formapi.config import config

metadata = sqlalchemy.MetaData()


user_table = sqlalchemy.Table(
    "user",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("username", sqlalchemy.String(64), unique=True, nullable=False),
    sqlalchemy.Column("password", sqlalchemy.String(256), nullable=False),  # scrypt digest
    sqlalchemy.Column("name", sqlalchemy.String(128), nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
)

form_table = sqlalchemy.Table(
    "form",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("user_id", sqlalchemy.ForeignKey("user.id"), nullable=False, index=True),
    sqlalchemy.Column("title", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("description", sqlalchemy.Text, nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
)

question_table = sqlalchemy.Table(
    "question",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column(
        "form_id", sqlalchemy.ForeignKey("form.id", ondelete="CASCADE"), nullable=False, index=True
    ),
    sqlalchemy.Column("text", sqlalchemy.Text, nullable=False),
    sqlalchemy.Column("type", sqlalchemy.String(16), nullable=False),  # text, dropdown
    sqlalchemy.Column("required", sqlalchemy.Boolean, nullable=False, default=False),
    sqlalchemy.Column("order", sqlalchemy.Integer, nullable=False, default=0),
)

option_table = sqlalchemy.Table(
    "option",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column(
        "question_id", sqlalchemy.ForeignKey("question.id", ondelete="CASCADE"), nullable=False, index=True
    ),
    sqlalchemy.Column("text", sqlalchemy.Text, nullable=False),
    sqlalchemy.Column("order", sqlalchemy.Integer, nullable=False, default=0),
)

response_table = sqlalchemy.Table(
    "response",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column(
        "form_id", sqlalchemy.ForeignKey("form.id", ondelete="CASCADE"), nullable=False, index=True
    ),
    sqlalchemy.Column("answers", sqlalchemy.JSON, nullable=False),  # {question_id: answer}
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True), nullable=False),
)


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = sqlalchemy.create_engine(config.DATABASE_URL, connect_args=connect_args)

metadata.create_all(engine)
database = databases.Database(
    config.DATABASE_URL, force_rollback=config.DB_FORCE_ROLL_BACK
)
