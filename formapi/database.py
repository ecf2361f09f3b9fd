import databases
import sqlalchemy
from formapi.config import config

metadata = sqlalchemy.MetaData()


user_table = sqlalchemy.Table(
    "user",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("name", sqlalchemy.String(128), nullable=False),
    sqlalchemy.Column("email", sqlalchemy.String(256), unique=True, nullable=False),
    sqlalchemy.Column("password_hash", sqlalchemy.String, nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=sqlalchemy.func.now()),
)

form_table = sqlalchemy.Table(
    "form",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("creator_id", sqlalchemy.ForeignKey("user.id"), nullable=False),
    sqlalchemy.Column("title", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=sqlalchemy.func.now()),
)

formfield_table = sqlalchemy.Table(
    "form_field",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("form_id", sqlalchemy.ForeignKey("form.id"), nullable=False),
    sqlalchemy.Column("field_id", sqlalchemy.String(64), nullable=False),  # client-side id, e.g. "field-3"
    sqlalchemy.Column("label", sqlalchemy.String(256), nullable=False),
    sqlalchemy.Column("field_type", sqlalchemy.String(32), nullable=False),
    sqlalchemy.Column("required", sqlalchemy.Boolean, default=True),
    sqlalchemy.Column("options", sqlalchemy.JSON, nullable=True),
    sqlalchemy.Column("order", sqlalchemy.Integer, default=0),
)

# form_id is informational only; deleting a form keeps its responses
response_table = sqlalchemy.Table(
    "response",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("form_id", sqlalchemy.Integer, nullable=False, index=True),
    sqlalchemy.Column("creator_id", sqlalchemy.Integer, nullable=True),
    sqlalchemy.Column("entries", sqlalchemy.JSON, nullable=False),  # [{key, value}, ...]
    sqlalchemy.Column("created_at", sqlalchemy.DateTime, default=sqlalchemy.func.now()),
)


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = sqlalchemy.create_engine(config.DATABASE_URL, connect_args=connect_args)

metadata.create_all(engine)
database = databases.Database(
    config.DATABASE_URL, force_rollback=config.DB_FORCE_ROLL_BACK
)
