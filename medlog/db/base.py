from sqlalchemy.orm import declarative_base

# SQLAlchemy base for model declarations
Base = declarative_base()
