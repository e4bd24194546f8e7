from app.config import settings
from app.db.base import Base
from app.db.models import DocumentRow  # noqa: F401
from app.db.session import build_engine

if __name__ == "__main__":
    print("Creating tables...")
    Base.metadata.create_all(bind=build_engine(settings.DATABASE_URL))
    print("Tables created.")
