from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Models import Base from here; app.db.models imports every model so
# Base.metadata is complete before create_all() or Alembic autogenerate.
