from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from config.config import Config
from app.models.base import Base

engine = create_engine(
    Config.DATABASE_URL,
    connect_args={'check_same_thread': False} if Config.DATABASE_URL.startswith('sqlite') else {}
)

# Services return ORM rows after their session has closed, so keep attributes loaded
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db():
    """Create the users, review form and application tables"""
    import app.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_db():
    Base.metadata.drop_all(bind=engine)


@contextmanager
def get_db():
    """
    One unit of work. Every service operation runs inside a single scope,
    so a failure part-way leaves the stored record untouched.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class DatabaseManager:
    """Single-model helpers for simple lookups and writes"""
    
    def __init__(self, model_class):
        self.model_class = model_class
    
    def create(self, **fields):
        with get_db() as db:
            instance = self.model_class(**fields)
            db.add(instance)
            db.flush()
            db.refresh(instance)
            return instance
    
    def get(self, record_id):
        if record_id is None:
            return None
        with get_db() as db:
            return db.get(self.model_class, record_id)
    
    def get_by(self, **criteria):
        with get_db() as db:
            return db.query(self.model_class).filter_by(**criteria).first()
    
    def update(self, record_id, **fields):
        """Set fields on one record; returns None when it does not exist"""
        with get_db() as db:
            instance = db.get(self.model_class, record_id)
            if instance is None:
                return None
            for key, value in fields.items():
                setattr(instance, key, value)
            db.flush()
            db.refresh(instance)
            return instance
    
    def exists(self, **criteria):
        with get_db() as db:
            return db.query(self.model_class.id).filter_by(**criteria).first() is not None
